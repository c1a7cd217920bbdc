"""
Unit tests for lot consolidation.

Tests cover:
- Weighted-average merge of unit-priced lots
- Latest-updated lot supplies the current price
- Deposit merge summing values and stored returns
- Single-lot pass-through and grouping/order of positions
"""

from decimal import Decimal

from assetbook.domain.models import InstrumentType
from assetbook.services.consolidation import consolidate, merge_lots, sort_lots

from tests.conftest import OWNER, local_datetime, make_deposit, make_item


class TestWeightedAverageMerge:
    """Tests for merging non-deposit lots."""

    def test_two_lots_merge_to_weighted_average(self):
        """
        GIVEN lot A: 10 units @ 100 (current 120, older)
          AND lot B: 5 units @ 120 (current 130, newer)
        WHEN they are consolidated
        THEN quantity is 15, average price 106.6667, cost basis 1600,
             current price 130, value 1950 and return 350
        """
        lot_a = make_item(
            quantity="10", purchase_price="100", current_price="120",
            updated_at=local_datetime(2024, 6, 1),
        )
        lot_b = make_item(
            quantity="5", purchase_price="120", current_price="130",
            updated_at=local_datetime(2024, 6, 10),
        )

        [position] = consolidate([lot_a, lot_b])

        assert position.quantity == Decimal("15")
        assert position.purchase_price.quantize(Decimal("0.0001")) == Decimal("106.6667")
        assert position.cost_basis == Decimal("1600")
        assert position.current_price == Decimal("130")
        assert position.total_value == Decimal("1950")
        assert position.total_return == Decimal("350")
        assert position.return_percentage.quantize(Decimal("0.0001")) == Decimal("21.8750")
        assert position.lot_count == 2

    def test_latest_updated_lot_wins_regardless_of_input_order(self):
        """
        GIVEN the newer lot is listed first
        WHEN consolidated
        THEN the newer lot's current price is still used
        """
        older = make_item(current_price="120", updated_at=local_datetime(2024, 6, 1))
        newer = make_item(current_price="130", updated_at=local_datetime(2024, 6, 10))

        [position] = consolidate([newer, older])

        assert position.current_price == Decimal("130")
        assert position.lot_ids == [older.item_id, newer.item_id]
        assert position.updated_at == newer.updated_at

    def test_lot_without_timestamp_sorts_first(self):
        undated = make_item(current_price="90")
        dated = make_item(current_price="110", updated_at=local_datetime(2024, 1, 1))

        assert sort_lots([dated, undated]) == [undated, dated]
        [position] = consolidate([dated, undated])
        assert position.current_price == Decimal("110")

    def test_zero_total_quantity_does_not_divide(self):
        """
        GIVEN two lots that both hold 0 units
        WHEN consolidated
        THEN purchase price and return percentage are 0
        """
        lots = [make_item(quantity="0"), make_item(quantity="0")]

        [position] = consolidate(lots)

        assert position.quantity == Decimal("0")
        assert position.purchase_price == Decimal("0")
        assert position.return_percentage == Decimal("0")


class TestDepositMerge:
    """Tests for merging lots whose quantity is principal."""

    def test_deposit_lots_sum_value_and_stored_return(self):
        """
        GIVEN two deposit lots under one symbol with accrued interest
        WHEN consolidated
        THEN total value and total return are sums of the lots' stored figures
             and the unit price is value / principal
        """
        first = make_deposit(principal="100000", symbol="TD-1", updated_at=local_datetime(2024, 6, 1))
        second = make_deposit(principal="50000", symbol="TD-1", updated_at=local_datetime(2024, 6, 2))
        first.total_value = Decimal("100090.411")
        first.total_return = Decimal("90.411")
        second.total_value = Decimal("50045.2055")
        second.total_return = Decimal("45.2055")

        [position] = consolidate([first, second])

        assert position.instrument_type == InstrumentType.DEPOSIT
        assert position.quantity == Decimal("150000")
        assert position.total_value == Decimal("150135.6165")
        assert position.total_return == Decimal("135.6165")
        assert position.cost_basis == Decimal("150000")
        assert position.purchase_price == position.current_price
        assert position.current_price == Decimal("150135.6165") / Decimal("150000")

    def test_deposit_interest_is_not_recomputed_from_prices(self):
        """
        GIVEN deposit lots whose current_price was never updated
        WHEN consolidated
        THEN the accrued value still comes from total_value
        """
        a = make_deposit(principal="1000", symbol="TD")
        b = make_deposit(principal="1000", symbol="TD")
        a.total_value = Decimal("1010")
        a.total_return = Decimal("10")

        [position] = consolidate([a, b])

        assert position.total_value == Decimal("2010")
        assert position.total_return == Decimal("10")


class TestGrouping:
    """Grouping, ordering and single-lot behavior."""

    def test_single_lot_passes_through(self):
        lot = make_item(symbol="ASELS", quantity="3", purchase_price="50", current_price="55")

        position = merge_lots([lot])

        assert position.quantity == lot.quantity
        assert position.purchase_price == lot.purchase_price
        assert position.current_price == lot.current_price
        assert position.total_value == lot.total_value
        assert position.return_percentage == lot.return_percentage
        assert position.lot_ids == [lot.item_id]

    def test_positions_grouped_by_owner_and_symbol_and_sorted(self):
        """
        GIVEN lots of two owners in several symbols
        WHEN consolidated
        THEN one position exists per (owner, symbol), ordered by owner then symbol
        """
        lots = [
            make_item(symbol="THYAO", owner_id="b"),
            make_item(symbol="ASELS", owner_id="a"),
            make_item(symbol="THYAO", owner_id="a"),
            make_item(symbol="THYAO", owner_id="a"),
        ]

        positions = consolidate(lots)

        assert [(p.owner_id, p.symbol, p.lot_count) for p in positions] == [
            ("a", "ASELS", 1),
            ("a", "THYAO", 2),
            ("b", "THYAO", 1),
        ]

    def test_empty_input(self):
        assert consolidate([]) == []

    def test_position_total_investment_is_cost_basis(self):
        lots = [
            make_item(quantity="2", purchase_price="10", owner_id=OWNER),
            make_item(quantity="3", purchase_price="20", owner_id=OWNER),
        ]

        [position] = consolidate(lots)

        assert position.total_investment == Decimal("80")
