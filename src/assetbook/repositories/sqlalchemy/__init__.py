"""SQLAlchemy repository implementations."""

from assetbook.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    init_db,
    init_db_with_path,
    reset_database,
    Base,
)
from assetbook.repositories.sqlalchemy.portfolio_repo import SqlAlchemyPortfolioRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "init_db",
    "init_db_with_path",
    "reset_database",
    "Base",
    "SqlAlchemyPortfolioRepository",
]
