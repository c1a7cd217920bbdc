"""Daily interest accrual for time-deposit items."""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from assetbook.core.clock import Clock, SystemClock
from assetbook.core.exceptions import NotFoundError, ValidationError
from assetbook.domain.models import AccrualStatus, PortfolioItem, SkipReason
from assetbook.domain.valuation import HUNDRED, ZERO, return_percentage
from assetbook.domain.views import AccrualResult, DailyInterest
from assetbook.repositories.protocols import PortfolioRepository

logger = logging.getLogger(__name__)

WITHHOLDING_TAX_RATE = Decimal("0.175")
DAYS_PER_YEAR = Decimal("365")


def validate_deposit(item: PortfolioItem) -> None:
    """Raise ValidationError unless item carries usable deposit terms."""
    if not item.is_deposit:
        raise ValidationError(
            f"Item {item.item_id} is a {item.instrument_type.value}, not a deposit"
        )
    metadata = item.metadata
    if metadata is None or metadata.annual_interest_rate is None:
        raise ValidationError(f"Deposit {item.item_id} has no annual interest rate")
    if metadata.annual_interest_rate <= ZERO:
        raise ValidationError(f"Deposit {item.item_id} annual interest rate must be > 0")
    if metadata.tax_exempt_percentage is None:
        raise ValidationError(f"Deposit {item.item_id} has no tax-exempt percentage")
    if not ZERO <= metadata.tax_exempt_percentage <= HUNDRED:
        raise ValidationError(
            f"Deposit {item.item_id} tax-exempt percentage must be between 0 and 100"
        )


def compute_daily_interest(item: PortfolioItem) -> DailyInterest:
    """
    Compute one day of interest on a validated deposit.

    The exempt share of principal earns nothing; withholding tax is taken
    from the gross interest of the taxable share.
    """
    metadata = item.metadata
    principal = item.quantity * item.purchase_price
    exempt_amount = principal * metadata.tax_exempt_percentage / HUNDRED
    taxable_amount = principal - exempt_amount
    gross = taxable_amount * metadata.annual_interest_rate / HUNDRED / DAYS_PER_YEAR
    withholding_tax = gross * WITHHOLDING_TAX_RATE
    return DailyInterest(
        principal=principal,
        exempt_amount=exempt_amount,
        taxable_amount=taxable_amount,
        gross=gross,
        withholding_tax=withholding_tax,
        net=gross - withholding_tax,
    )


def skip_reason(item: PortfolioItem, interest: DailyInterest, today: date) -> Optional[SkipReason]:
    """Return why accrual should not run today, or None if it should."""
    maturity = item.metadata.maturity_date if item.metadata else None
    if maturity is not None and today > maturity:
        return SkipReason.MATURED
    if interest.net <= ZERO:
        return SkipReason.NON_POSITIVE_INTEREST
    return None


def apply_daily_interest(item: PortfolioItem, net_interest: Decimal, as_of: datetime) -> PortfolioItem:
    """
    Return a copy of the deposit with one day's net interest added.

    Return figures are measured against quantity * purchase_price, the
    original investment, not against the repriced current_price.
    """
    total_value = item.total_value + net_interest
    current_price = total_value / item.quantity if item.quantity != ZERO else ZERO
    total_investment = item.quantity * item.purchase_price
    total_return = total_value - total_investment
    return replace(
        item,
        total_value=total_value,
        current_price=current_price,
        total_return=total_return,
        return_percentage=return_percentage(total_return, total_investment),
        updated_at=as_of,
        last_updated=as_of,
    )


class DepositAccrualEngine:
    """
    Applies exactly one day's net interest to one deposit.

    The engine does not know which days were already accrued; callers
    (AccrualScheduler) own the once-per-calendar-day check. Writes go through
    PortfolioRepository.upsert_item with the version that was read, so a
    concurrent writer makes the write fail with ConcurrencyConflict instead of
    applying interest twice.
    """

    def __init__(
        self,
        repository: PortfolioRepository,
        clock: Optional[Clock] = None,
    ):
        self._repository = repository
        self._clock = clock or SystemClock()

    def find_item(self, owner_id: str, item_id: str) -> PortfolioItem:
        """Load one item of owner_id or raise NotFoundError."""
        for item in self._repository.get_items(owner_id):
            if item.item_id == item_id:
                return item
        raise NotFoundError("Portfolio item", item_id)

    def accrue(
        self,
        owner_id: str,
        item_id: str,
        today: Optional[date] = None,
    ) -> AccrualResult:
        """
        Read, compute and write one day of interest.

        Raises ValidationError for missing terms, NotFoundError for an unknown
        item, and lets PersistenceError / ConcurrencyConflict propagate; in
        every raising case nothing was written. Matured deposits and
        non-positive interest come back as SKIPPED results.
        """
        today = today or self._clock.today()
        item = self.find_item(owner_id, item_id)
        validate_deposit(item)

        interest = compute_daily_interest(item)
        reason = skip_reason(item, interest, today)
        if reason is not None:
            logger.info("Accrual skipped for %s/%s: %s", owner_id, item_id, reason.value)
            return AccrualResult(
                owner_id=owner_id,
                item_id=item_id,
                status=AccrualStatus.SKIPPED,
                skip_reason=reason,
                interest=interest,
                item=item,
            )

        updated = apply_daily_interest(item, interest.net, self._clock.now())
        stored = self._repository.upsert_item(updated)
        logger.info(
            "Accrued %s net interest on %s/%s (total value %s)",
            interest.net,
            owner_id,
            item_id,
            stored.total_value,
        )
        return AccrualResult(
            owner_id=owner_id,
            item_id=item_id,
            status=AccrualStatus.APPLIED,
            interest=interest,
            item=stored,
        )
