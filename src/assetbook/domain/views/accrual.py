"""View models for deposit accrual outcomes."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from assetbook.domain.models import AccrualStatus, PortfolioItem, SkipReason


@dataclass(frozen=True)
class DailyInterest:
    """Breakdown of one day's interest on a deposit."""

    principal: Decimal
    exempt_amount: Decimal
    taxable_amount: Decimal
    gross: Decimal
    withholding_tax: Decimal
    net: Decimal


@dataclass
class AccrualResult:
    """Outcome of one accrual attempt for one deposit."""

    owner_id: str
    item_id: str
    status: AccrualStatus
    skip_reason: Optional[SkipReason] = None
    interest: Optional[DailyInterest] = None
    item: Optional[PortfolioItem] = None
    error: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.status == AccrualStatus.APPLIED


@dataclass
class MaturityWarning:
    """A deposit approaching its maturity date."""

    owner_id: str
    item_id: str
    display_name: str
    maturity_date: date
    days_left: int


@dataclass
class AccrualRunReport:
    """Everything one daily batch did, collected after the loop finishes."""

    run_date: date
    applied: list[AccrualResult] = field(default_factory=list)
    skipped: list[AccrualResult] = field(default_factory=list)
    failed: list[AccrualResult] = field(default_factory=list)
    maturity_warnings: list[MaturityWarning] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return len(self.applied) + len(self.skipped) + len(self.failed)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)
