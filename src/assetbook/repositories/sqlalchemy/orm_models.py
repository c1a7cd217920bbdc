"""SQLAlchemy ORM model definitions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Enum as SqlEnum,
)

from assetbook.repositories.sqlalchemy.database import Base
from assetbook.domain.models.enums import InstrumentType

# Monetary and quantity columns share one precision so merged sums stay exact
_AMOUNT = Numeric(precision=28, scale=10)


class PortfolioItemORM(Base):
    """SQLAlchemy model for PortfolioItem (one purchase lot)."""

    __tablename__ = "portfolio_items"
    __table_args__ = (Index("ix_portfolio_items_owner_symbol", "owner_id", "symbol"),)

    item_id = Column(String(36), primary_key=True)
    owner_id = Column(String(128), nullable=False, index=True)
    instrument_type = Column(SqlEnum(InstrumentType), nullable=False)
    symbol = Column(String(64), nullable=False)
    display_name = Column(String(255), nullable=False)
    quantity = Column(_AMOUNT, nullable=False)
    purchase_price = Column(_AMOUNT, nullable=False)
    current_price = Column(_AMOUNT, nullable=False)
    total_value = Column(_AMOUNT, nullable=False, default=Decimal("0"))
    total_return = Column(_AMOUNT, nullable=False, default=Decimal("0"))
    return_percentage = Column(_AMOUNT, nullable=False, default=Decimal("0"))
    purchase_date = Column(Date, nullable=True)

    # Deposit metadata (null for other instruments)
    annual_interest_rate = Column(Numeric(precision=12, scale=6), nullable=True)
    tax_exempt_percentage = Column(Numeric(precision=12, scale=6), nullable=True)
    maturity_date = Column(Date, nullable=True)
    bank_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)
