"""
Unit tests for the deposit accrual engine.

Tests cover:
- Daily interest formula (exempt share, withholding tax)
- Validation of deposit terms
- Skip guards: matured deposits and non-positive interest
- Applying interest and persisting through the repository
- Failure paths leaving the stored item untouched
"""

from datetime import date
from decimal import Decimal

import pytest

from assetbook.core.exceptions import ConcurrencyConflict, NotFoundError, PersistenceError, ValidationError
from assetbook.domain.models import AccrualStatus, DepositMetadata, SkipReason
from assetbook.services.deposit_accrual import (
    DepositAccrualEngine,
    apply_daily_interest,
    compute_daily_interest,
    skip_reason,
    validate_deposit,
)

from tests.conftest import OWNER, assert_decimal_equal, local_datetime, make_deposit, make_item

Q = Decimal("0.001")


# =============================================================================
# FORMULA TESTS
# =============================================================================


class TestComputeDailyInterest:
    """Tests for the daily interest formula."""

    def test_fully_taxable_deposit(self):
        """
        GIVEN principal 100000 at 40% with 0% exempt
        WHEN daily interest is computed
        THEN gross is 109.589, tax 19.178 and net 90.411
        """
        interest = compute_daily_interest(make_deposit(principal="100000", annual_interest_rate="40"))

        assert interest.principal == Decimal("100000")
        assert interest.exempt_amount == Decimal("0")
        assert interest.gross.quantize(Q) == Decimal("109.589")
        assert interest.withholding_tax.quantize(Q) == Decimal("19.178")
        assert interest.net.quantize(Q) == Decimal("90.411")

    def test_exempt_share_earns_nothing(self):
        """
        GIVEN principal 100000 at 40% with 25% exempt
        WHEN daily interest is computed
        THEN only the 75000 taxable share earns interest
        """
        interest = compute_daily_interest(
            make_deposit(principal="100000", annual_interest_rate="40", tax_exempt_percentage="25")
        )

        assert interest.exempt_amount == Decimal("25000")
        assert interest.taxable_amount == Decimal("75000")
        assert interest.gross.quantize(Q) == Decimal("82.192")
        assert interest.net.quantize(Q) == Decimal("67.808")

    def test_fully_exempt_deposit_has_zero_net(self):
        interest = compute_daily_interest(make_deposit(tax_exempt_percentage="100"))

        assert interest.net == Decimal("0")

    def test_net_is_gross_minus_tax(self):
        interest = compute_daily_interest(make_deposit(principal="12345.67", annual_interest_rate="47.5"))

        assert interest.net == interest.gross - interest.withholding_tax
        assert interest.withholding_tax == interest.gross * Decimal("0.175")


class TestValidateDeposit:
    """Tests for deposit term validation."""

    def test_valid_deposit_passes(self):
        validate_deposit(make_deposit())

    def test_non_deposit_rejected(self):
        with pytest.raises(ValidationError):
            validate_deposit(make_item())

    def test_missing_metadata_rejected(self):
        deposit = make_deposit()
        deposit.metadata = None

        with pytest.raises(ValidationError):
            validate_deposit(deposit)

    @pytest.mark.parametrize(
        "rate,exempt",
        [
            (None, "0"),
            ("0", "0"),
            ("-5", "0"),
            ("40", None),
            ("40", "-1"),
            ("40", "100.01"),
        ],
    )
    def test_bad_terms_rejected(self, rate, exempt):
        deposit = make_deposit()
        deposit.metadata = DepositMetadata(annual_interest_rate=rate, tax_exempt_percentage=exempt)

        with pytest.raises(ValidationError):
            validate_deposit(deposit)


class TestSkipReason:
    """Tests for the skip guards."""

    def test_matured_deposit_is_skipped(self):
        """
        GIVEN a deposit maturing 2024-06-14
        WHEN checked on 2024-06-15
        THEN the reason is MATURED
        """
        deposit = make_deposit(maturity_date=date(2024, 6, 14))

        reason = skip_reason(deposit, compute_daily_interest(deposit), date(2024, 6, 15))

        assert reason == SkipReason.MATURED

    def test_maturity_day_itself_still_accrues(self):
        deposit = make_deposit(maturity_date=date(2024, 6, 15))

        assert skip_reason(deposit, compute_daily_interest(deposit), date(2024, 6, 15)) is None

    def test_non_positive_interest_is_skipped(self):
        deposit = make_deposit(tax_exempt_percentage="100")

        reason = skip_reason(deposit, compute_daily_interest(deposit), date(2024, 6, 15))

        assert reason == SkipReason.NON_POSITIVE_INTEREST


class TestApplyDailyInterest:
    def test_value_and_return_measured_against_original_investment(self):
        """
        GIVEN a 100000 deposit already worth 100100
        WHEN 90.411 net interest is applied
        THEN total value is 100190.411, return 190.411 and price value / principal
        """
        deposit = make_deposit(principal="100000")
        deposit.total_value = Decimal("100100")
        as_of = local_datetime(2024, 6, 15, 9, 0)

        updated = apply_daily_interest(deposit, Decimal("90.411"), as_of)

        assert updated.total_value == Decimal("100190.411")
        assert updated.total_return == Decimal("190.411")
        assert updated.current_price == Decimal("100190.411") / Decimal("100000")
        assert updated.return_percentage == Decimal("190.411") / Decimal("100000") * 100
        assert updated.last_updated == as_of
        assert deposit.total_value == Decimal("100100")


# =============================================================================
# ENGINE TESTS
# =============================================================================


class TestDepositAccrualEngine:
    """Tests for DepositAccrualEngine.accrue()."""

    def test_accrue_applies_and_persists(self, accrual_engine, deposit_factory, portfolio_repo):
        """
        GIVEN a stored 100000 deposit at 40%
        WHEN one day is accrued
        THEN the result is APPLIED and the stored value grew by the net interest
        """
        deposit = deposit_factory(principal="100000", annual_interest_rate="40")

        result = accrual_engine.accrue(OWNER, deposit.item_id, date(2024, 6, 15))

        assert result.status == AccrualStatus.APPLIED
        assert result.interest.net.quantize(Q) == Decimal("90.411")
        [stored] = portfolio_repo.get_items(OWNER)
        assert_decimal_equal(stored.total_value, "100090.411")
        assert_decimal_equal(stored.total_return, "90.411")
        assert stored.version == deposit.version + 1

    def test_matured_deposit_is_not_written(self, accrual_engine, deposit_factory, portfolio_repo):
        """
        GIVEN a deposit whose maturity date has passed
        WHEN accrue runs
        THEN the result is SKIPPED/MATURED and the stored value is unchanged
        """
        deposit = deposit_factory(maturity_date=date(2024, 6, 1))

        result = accrual_engine.accrue(OWNER, deposit.item_id, date(2024, 6, 15))

        assert result.status == AccrualStatus.SKIPPED
        assert result.skip_reason == SkipReason.MATURED
        [stored] = portfolio_repo.get_items(OWNER)
        assert_decimal_equal(stored.total_value, "100000")
        assert stored.version == deposit.version

    def test_unknown_item_raises_not_found(self, accrual_engine):
        with pytest.raises(NotFoundError):
            accrual_engine.accrue(OWNER, "missing", date(2024, 6, 15))

    def test_other_owners_item_is_not_found(self, accrual_engine, deposit_factory):
        deposit = deposit_factory(owner_id="someone-else")

        with pytest.raises(NotFoundError):
            accrual_engine.accrue(OWNER, deposit.item_id, date(2024, 6, 15))

    def test_non_deposit_raises_validation_error(self, accrual_engine, item_factory):
        stock = item_factory()

        with pytest.raises(ValidationError):
            accrual_engine.accrue(OWNER, stock.item_id, date(2024, 6, 15))

    def test_write_failure_propagates_and_leaves_item_unchanged(
        self, failing_repo, clock, deposit_factory, portfolio_repo
    ):
        """
        GIVEN the repository fails on write for a deposit
        WHEN accrue runs
        THEN PersistenceError propagates and the stored value is unchanged
        """
        deposit = deposit_factory()
        failing_repo.fail_upsert_for.add(deposit.item_id)
        engine = DepositAccrualEngine(failing_repo, clock=clock)

        with pytest.raises(PersistenceError):
            engine.accrue(OWNER, deposit.item_id, date(2024, 6, 15))

        [stored] = portfolio_repo.get_items(OWNER)
        assert_decimal_equal(stored.total_value, "100000")

    def test_stale_version_raises_conflict(self, accrual_engine, deposit_factory, portfolio_repo):
        """
        GIVEN another writer updated the deposit after it was read
        WHEN the stale copy is written
        THEN ConcurrencyConflict is raised
        """
        deposit = deposit_factory()
        accrual_engine.accrue(OWNER, deposit.item_id, date(2024, 6, 15))

        with pytest.raises(ConcurrencyConflict):
            portfolio_repo.upsert_item(deposit)
