"""Portfolio service for item management, repricing and reporting."""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from assetbook.core.clock import Clock, SystemClock
from assetbook.core.exceptions import NotFoundError, ValidationError
from assetbook.domain.models import (
    DepositMetadata,
    GoldVariant,
    InstrumentType,
    NotificationEvent,
    PortfolioItem,
    to_decimal,
)
from assetbook.domain.valuation import ZERO, initial_valuation, revalue
from assetbook.domain.views import ConsolidatedPosition, PortfolioAnalysis, PortfolioSummary
from assetbook.providers import Notifier
from assetbook.repositories.protocols import PortfolioRepository
from assetbook.services.analytics import analyze, summarize
from assetbook.services.consolidation import consolidate

if TYPE_CHECKING:
    from assetbook.services.accrual_scheduler import AccrualScheduler

logger = logging.getLogger(__name__)


@dataclass
class PortfolioItemCreate:
    """Input data for adding a purchase lot."""

    owner_id: str
    instrument_type: InstrumentType
    display_name: str
    quantity: Decimal
    purchase_price: Decimal
    symbol: Optional[str] = None
    purchase_date: Optional[date] = None
    metadata: Optional[DepositMetadata] = None


@dataclass
class PortfolioItemUpdate:
    """Partial update data for editing a lot."""

    display_name: Optional[str] = None
    quantity: Optional[Decimal] = None
    purchase_price: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    purchase_date: Optional[date] = None


@dataclass
class DepositInfoUpdate:
    """Partial update of a deposit's terms."""

    annual_interest_rate: Optional[Decimal] = None
    tax_exempt_percentage: Optional[Decimal] = None
    maturity_date: Optional[date] = None
    bank_name: Optional[str] = None


class PortfolioService:
    """
    Service for managing an owner's purchase lots.

    Every write keeps the stored derived figures (total_value, total_return,
    return_percentage) consistent with quantity and prices. Reporting reads
    the lots and hands them to the pure consolidation and analytics functions.
    """

    def __init__(
        self,
        repository: PortfolioRepository,
        notifier: Optional[Notifier] = None,
        scheduler: Optional["AccrualScheduler"] = None,
        clock: Optional[Clock] = None,
    ):
        self._repository = repository
        self._notifier = notifier
        self._scheduler = scheduler
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def add_item(self, data: PortfolioItemCreate) -> PortfolioItem:
        """
        Add a new lot priced at its purchase price.

        Deposits without a symbol use their (upper-cased) item id, so each deposit is its
        own position unless the caller groups them under a shared symbol.
        """
        self._validate_create(data)

        item_id = str(uuid.uuid4())
        instrument_type = InstrumentType(data.instrument_type)
        if data.symbol and data.symbol.strip():
            symbol = data.symbol.strip().upper()
        else:
            symbol = item_id.upper()

        now = self._clock.now()
        item = PortfolioItem(
            item_id=item_id,
            owner_id=data.owner_id,
            instrument_type=instrument_type,
            symbol=symbol,
            display_name=data.display_name.strip(),
            quantity=data.quantity,
            purchase_price=data.purchase_price,
            current_price=data.purchase_price,
            purchase_date=data.purchase_date or now.date(),
            metadata=data.metadata,
            created_at=now,
            updated_at=now,
            last_updated=now,
        )
        created = self._repository.upsert_item(initial_valuation(item))
        logger.info("Added %s lot %s for %s", instrument_type.value, created.item_id, data.owner_id)
        return created

    def get_item(self, owner_id: str, item_id: str) -> PortfolioItem:
        """Get one lot of owner_id by id."""
        for item in self._repository.get_items(owner_id):
            if item.item_id == item_id:
                return item
        raise NotFoundError("Portfolio item", item_id)

    def list_items(
        self,
        owner_id: str,
        instrument_type: Optional[InstrumentType] = None,
    ) -> list[PortfolioItem]:
        """List lots of owner_id, optionally filtered by instrument type."""
        items = self._repository.get_items(owner_id)
        if instrument_type is not None:
            items = [item for item in items if item.instrument_type == instrument_type]
        return items

    def update_item(
        self,
        owner_id: str,
        item_id: str,
        patch: PortfolioItemUpdate,
    ) -> PortfolioItem:
        """Edit a lot and recompute its derived figures."""
        item = self.get_item(owner_id, item_id)

        changes: dict = {}
        if patch.display_name is not None:
            if not patch.display_name.strip():
                raise ValidationError("Display name cannot be empty")
            changes["display_name"] = patch.display_name.strip()
        if patch.quantity is not None:
            changes["quantity"] = self._non_negative(patch.quantity, "Quantity")
        if patch.purchase_price is not None:
            changes["purchase_price"] = self._non_negative(patch.purchase_price, "Purchase price")
        if patch.purchase_date is not None:
            changes["purchase_date"] = patch.purchase_date

        if patch.current_price is not None:
            current_price = self._non_negative(patch.current_price, "Current price")
        else:
            current_price = item.current_price

        updated = revalue(replace(item, **changes), current_price, self._clock.now())
        return self._repository.upsert_item(updated)

    def update_deposit_info(
        self,
        owner_id: str,
        item_id: str,
        patch: DepositInfoUpdate,
    ) -> PortfolioItem:
        """Change a deposit's terms; accrued value is left as it is."""
        item = self.get_item(owner_id, item_id)
        if not item.is_deposit:
            raise ValidationError(f"Item {item_id} is not a deposit")

        metadata = item.metadata or DepositMetadata()
        changes: dict = {}
        if patch.annual_interest_rate is not None:
            rate = to_decimal(patch.annual_interest_rate)
            if rate <= ZERO:
                raise ValidationError("Annual interest rate must be > 0")
            changes["annual_interest_rate"] = rate
        if patch.tax_exempt_percentage is not None:
            changes["tax_exempt_percentage"] = self._percentage(patch.tax_exempt_percentage)
        if patch.maturity_date is not None:
            changes["maturity_date"] = patch.maturity_date
        if patch.bank_name is not None:
            changes["bank_name"] = patch.bank_name.strip() or None

        now = self._clock.now()
        updated = self._repository.upsert_item(
            replace(item, metadata=replace(metadata, **changes), updated_at=now)
        )
        logger.info("Updated deposit terms of %s/%s", owner_id, item_id)
        if self._notifier is not None:
            self._notifier.notify(
                NotificationEvent.DEPOSIT_INFO_UPDATED,
                {
                    "owner_id": owner_id,
                    "item_id": item_id,
                    "display_name": updated.display_name,
                    "changed": sorted(changes),
                },
            )
        return updated

    def delete_item(self, owner_id: str, item_id: str) -> None:
        """Delete a lot and drop its accrual schedule if it has one."""
        item = self.get_item(owner_id, item_id)
        if self._scheduler is not None and item.is_deposit:
            self._scheduler.forget(owner_id, item_id)
        self._repository.delete_item(item_id)
        logger.info("Deleted lot %s of %s", item_id, owner_id)

    # ------------------------------------------------------------------
    # Repricing
    # ------------------------------------------------------------------

    def bulk_reprice(self, owner_id: str, symbol: str, new_price: Decimal) -> list[PortfolioItem]:
        """
        Reprice every lot of owner_id in symbol atomically.

        Either all matching lots carry new_price afterwards or none changed.
        """
        if not symbol or not symbol.strip():
            raise ValidationError("Symbol is required for repricing")
        price = self._non_negative(new_price, "Price")
        updated = self._repository.bulk_update_by_symbol(owner_id, symbol.strip().upper(), price)
        logger.info("Repriced %d lots of %s for %s at %s", len(updated), symbol, owner_id, price)
        return updated

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def consolidated_positions(self, owner_id: str) -> list[ConsolidatedPosition]:
        """One merged position per symbol."""
        return consolidate(self._repository.get_items(owner_id))

    def summary(self, owner_id: str, consolidated: bool = True) -> PortfolioSummary:
        """Summarize consolidated positions, or raw lots when consolidated is False."""
        items = self._repository.get_items(owner_id)
        return summarize(consolidate(items) if consolidated else items)

    def analysis(self, owner_id: str) -> PortfolioAnalysis:
        """Allocation and concentration risk over consolidated positions."""
        return analyze(self.consolidated_positions(owner_id))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_create(self, data: PortfolioItemCreate) -> None:
        if not data.owner_id:
            raise ValidationError("Owner id is required")
        if not data.display_name or not data.display_name.strip():
            raise ValidationError("Display name is required")
        try:
            instrument_type = InstrumentType(data.instrument_type)
        except ValueError:
            raise ValidationError(f"Unknown instrument type: {data.instrument_type}")

        data.quantity = self._non_negative(data.quantity, "Quantity")
        data.purchase_price = self._non_negative(data.purchase_price, "Purchase price")

        if instrument_type == InstrumentType.DEPOSIT:
            if data.quantity <= ZERO:
                raise ValidationError("Deposit principal must be > 0")
            if data.metadata is not None and data.metadata.tax_exempt_percentage is not None:
                self._percentage(data.metadata.tax_exempt_percentage)
        else:
            if not data.symbol or not data.symbol.strip():
                raise ValidationError(f"Symbol is required for {instrument_type.label}")
            if instrument_type == InstrumentType.GOLD:
                self._gold_variant(data.symbol)
            if data.metadata is not None:
                raise ValidationError("Only deposits carry deposit terms")

    @staticmethod
    def _gold_variant(symbol: str) -> GoldVariant:
        try:
            return GoldVariant(symbol.strip().upper())
        except ValueError:
            known = ", ".join(variant.value for variant in GoldVariant)
            raise ValidationError(f"Unknown gold variant: {symbol} (expected one of {known})")

    @staticmethod
    def _non_negative(value, name: str) -> Decimal:
        amount = to_decimal(value)
        if amount < ZERO:
            raise ValidationError(f"{name} cannot be negative")
        return amount

    @staticmethod
    def _percentage(value) -> Decimal:
        amount = to_decimal(value)
        if not ZERO <= amount <= Decimal("100"):
            raise ValidationError("Tax-exempt percentage must be between 0 and 100")
        return amount
