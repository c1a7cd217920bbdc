"""Repository protocol definitions (interfaces)."""

from assetbook.repositories.protocols.portfolio_repo import PortfolioRepository

__all__ = [
    "PortfolioRepository",
]
