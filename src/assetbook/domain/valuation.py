"""Per-item value and return math.

Pure functions shared by consolidation, repricing and item mutation paths.
None of them raise on zero quantities or prices.
"""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from assetbook.domain.models import PortfolioItem, to_decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def return_percentage(total_return: Decimal, total_investment: Decimal) -> Decimal:
    """Return total_return as a percentage of total_investment, 0 when nothing was invested."""
    if total_investment > ZERO:
        return total_return / total_investment * HUNDRED
    return ZERO


def revalue(
    item: PortfolioItem,
    new_current_price: Decimal,
    as_of: Optional[datetime] = None,
) -> PortfolioItem:
    """
    Return a copy of item priced at new_current_price.

    current_price, total_value, total_return and return_percentage are
    recomputed; when as_of is given it becomes updated_at and last_updated.
    """
    price = to_decimal(new_current_price)
    total_value = item.quantity * price
    total_investment = item.quantity * item.purchase_price
    total_return = total_value - total_investment

    changes = dict(
        current_price=price,
        total_value=total_value,
        total_return=total_return,
        return_percentage=return_percentage(total_return, total_investment),
    )
    if as_of is not None:
        changes["updated_at"] = as_of
        changes["last_updated"] = as_of
    return replace(item, **changes)


def initial_valuation(item: PortfolioItem) -> PortfolioItem:
    """Price a new lot at its purchase price so it starts at zero return."""
    return revalue(item, item.purchase_price)


def reprice_lots(
    items: Iterable[PortfolioItem],
    symbol: str,
    new_price: Decimal,
    as_of: Optional[datetime] = None,
) -> list[PortfolioItem]:
    """Revalue every lot whose symbol matches; other lots are not returned."""
    return [revalue(item, new_price, as_of) for item in items if item.symbol == symbol]
