"""PortfolioItem and DepositMetadata domain models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from assetbook.core.timezone import parse_date
from assetbook.domain.models.enums import InstrumentType


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats and strings to Decimal (floats via their repr)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


@dataclass
class DepositMetadata:
    """
    Terms of a time-deposit account.

    - annual_interest_rate: nominal yearly rate in percent (40 means 40%)
    - tax_exempt_percentage: share of principal that earns no interest, 0-100
    - maturity_date: last calendar day on which interest accrues
    """

    annual_interest_rate: Optional[Decimal] = None
    tax_exempt_percentage: Optional[Decimal] = None
    maturity_date: Optional[date] = None
    bank_name: Optional[str] = None

    def __post_init__(self) -> None:
        self.annual_interest_rate = _optional_decimal(self.annual_interest_rate)
        self.tax_exempt_percentage = _optional_decimal(self.tax_exempt_percentage)
        if isinstance(self.maturity_date, str):
            self.maturity_date = parse_date(self.maturity_date)
        elif isinstance(self.maturity_date, datetime):
            self.maturity_date = self.maturity_date.date()

    @property
    def has_accrual_terms(self) -> bool:
        """Return True if rate and exemption are present and in range."""
        return (
            self.annual_interest_rate is not None
            and self.annual_interest_rate > 0
            and self.tax_exempt_percentage is not None
            and Decimal("0") <= self.tax_exempt_percentage <= Decimal("100")
        )


@dataclass
class PortfolioItem:
    """
    One purchase lot owned by exactly one user.

    total_value, total_return and return_percentage are stored but derived:
    total_value = quantity * current_price and
    total_return = total_value - quantity * purchase_price.
    For DEPOSIT items quantity is the principal amount, not a unit count.
    """

    item_id: str
    owner_id: str
    instrument_type: InstrumentType
    symbol: str
    display_name: str
    quantity: Decimal
    purchase_price: Decimal
    current_price: Decimal
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    total_return: Decimal = field(default_factory=lambda: Decimal("0"))
    return_percentage: Decimal = field(default_factory=lambda: Decimal("0"))
    purchase_date: Optional[date] = None
    metadata: Optional[DepositMetadata] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
    last_updated: Optional[datetime] = field(default=None)
    version: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.instrument_type, str):
            self.instrument_type = InstrumentType(self.instrument_type)
        self.quantity = to_decimal(self.quantity)
        self.purchase_price = to_decimal(self.purchase_price)
        self.current_price = to_decimal(self.current_price)
        self.total_value = to_decimal(self.total_value)
        self.total_return = to_decimal(self.total_return)
        self.return_percentage = to_decimal(self.return_percentage)
        if isinstance(self.metadata, dict):
            self.metadata = DepositMetadata(**self.metadata)
        if isinstance(self.purchase_date, str):
            self.purchase_date = parse_date(self.purchase_date)

    @property
    def is_deposit(self) -> bool:
        """Return True if this is a time-deposit item."""
        return self.instrument_type == InstrumentType.DEPOSIT

    @property
    def total_investment(self) -> Decimal:
        """Amount paid for the lot: quantity * purchase_price."""
        return self.quantity * self.purchase_price
