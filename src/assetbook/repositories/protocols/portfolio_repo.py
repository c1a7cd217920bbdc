"""Portfolio repository protocol."""

from decimal import Decimal
from typing import Protocol

from assetbook.domain.models import PortfolioItem


class PortfolioRepository(Protocol):
    """
    Interface for portfolio item data access.

    The accrual engine and scheduler depend on exactly these four operations.
    """

    def get_items(self, owner_id: str) -> list[PortfolioItem]:
        """List every item owned by owner_id, newest first."""
        ...

    def upsert_item(self, item: PortfolioItem) -> PortfolioItem:
        """
        Insert or update an item and return the stored copy.

        item.version must equal the stored version (0 for a new item);
        otherwise ConcurrencyConflict is raised and nothing is written.
        The returned copy carries the bumped version.
        """
        ...

    def delete_item(self, item_id: str) -> None:
        """Delete an item (hard delete)."""
        ...

    def bulk_update_by_symbol(
        self,
        owner_id: str,
        symbol: str,
        new_price: Decimal,
    ) -> list[PortfolioItem]:
        """Reprice every lot of owner_id in symbol in one transaction."""
        ...
