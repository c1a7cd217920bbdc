"""Consolidation of repeated purchase lots into one position per symbol."""

from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from assetbook.domain.models import PortfolioItem
from assetbook.domain.valuation import ZERO, return_percentage
from assetbook.domain.views import ConsolidatedPosition


def consolidate(items: Iterable[PortfolioItem]) -> list[ConsolidatedPosition]:
    """
    Merge lots sharing (owner_id, symbol) into one position each.

    Lots are processed in ascending updated_at order, so the most recently
    repriced lot supplies the merged current_price. Result is ordered by
    (owner_id, symbol).
    """
    groups: "OrderedDict[tuple[str, str], list[PortfolioItem]]" = OrderedDict()
    for item in sort_lots(items):
        groups.setdefault((item.owner_id, item.symbol), []).append(item)

    positions = [merge_lots(lots) for lots in groups.values()]
    positions.sort(key=lambda p: (p.owner_id, p.symbol))
    return positions


def sort_lots(items: Iterable[PortfolioItem]) -> list[PortfolioItem]:
    """Stable ascending sort by updated_at; lots without a timestamp come first."""
    return sorted(items, key=_updated_sort_key)


def merge_lots(lots: list[PortfolioItem]) -> ConsolidatedPosition:
    """
    Merge lots of one symbol that are already in updated_at order.

    A single lot passes through unchanged. Deposits sum their values because
    their quantity is money; interest already in a lot's total_value is never
    recomputed here.
    """
    if len(lots) == 1:
        return _single_lot(lots[0])
    if lots[-1].instrument_type.quantity_is_principal:
        return _merge_principal_lots(lots)
    return _merge_unit_lots(lots)


def _merge_unit_lots(lots: list[PortfolioItem]) -> ConsolidatedPosition:
    quantity = sum((lot.quantity for lot in lots), ZERO)
    cost_basis = sum((lot.quantity * lot.purchase_price for lot in lots), ZERO)
    average_price = cost_basis / quantity if quantity != ZERO else ZERO
    current_price = lots[-1].current_price
    total_value = quantity * current_price
    total_return = total_value - cost_basis

    return _position(
        lots,
        quantity=quantity,
        purchase_price=average_price,
        current_price=current_price,
        total_value=total_value,
        total_return=total_return,
        cost_basis=cost_basis,
    )


def _merge_principal_lots(lots: list[PortfolioItem]) -> ConsolidatedPosition:
    quantity = sum((lot.quantity for lot in lots), ZERO)
    cost_basis = sum((lot.quantity * lot.purchase_price for lot in lots), ZERO)
    total_value = sum((lot.total_value for lot in lots), ZERO)
    total_return = sum((lot.total_return for lot in lots), ZERO)
    unit_price = total_value / quantity if quantity != ZERO else ZERO

    return _position(
        lots,
        quantity=quantity,
        purchase_price=unit_price,
        current_price=unit_price,
        total_value=total_value,
        total_return=total_return,
        cost_basis=cost_basis,
    )


def _position(
    lots: list[PortfolioItem],
    quantity: Decimal,
    purchase_price: Decimal,
    current_price: Decimal,
    total_value: Decimal,
    total_return: Decimal,
    cost_basis: Decimal,
) -> ConsolidatedPosition:
    latest = lots[-1]
    return ConsolidatedPosition(
        owner_id=latest.owner_id,
        symbol=latest.symbol,
        display_name=lots[0].display_name,
        instrument_type=latest.instrument_type,
        quantity=quantity,
        purchase_price=purchase_price,
        current_price=current_price,
        total_value=total_value,
        total_return=total_return,
        return_percentage=return_percentage(total_return, cost_basis),
        cost_basis=cost_basis,
        lot_count=len(lots),
        lot_ids=[lot.item_id for lot in lots],
        updated_at=_latest(lot.updated_at for lot in lots),
        last_updated=_latest(lot.last_updated for lot in lots),
    )


def _single_lot(lot: PortfolioItem) -> ConsolidatedPosition:
    return ConsolidatedPosition(
        owner_id=lot.owner_id,
        symbol=lot.symbol,
        display_name=lot.display_name,
        instrument_type=lot.instrument_type,
        quantity=lot.quantity,
        purchase_price=lot.purchase_price,
        current_price=lot.current_price,
        total_value=lot.total_value,
        total_return=lot.total_return,
        return_percentage=lot.return_percentage,
        cost_basis=lot.total_investment,
        lot_count=1,
        lot_ids=[lot.item_id],
        updated_at=lot.updated_at,
        last_updated=lot.last_updated,
    )


def _updated_sort_key(item: PortfolioItem) -> tuple[int, float]:
    if item.updated_at is None:
        return (0, 0.0)
    return (1, item.updated_at.timestamp())


def _latest(values: Iterable[Optional[datetime]]) -> Optional[datetime]:
    present = [v for v in values if v is not None]
    return max(present, key=lambda v: v.timestamp()) if present else None
