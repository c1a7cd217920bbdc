"""
Pytest configuration and fixtures for assetbook tests.

This module provides:
- In-memory SQLite database fixtures
- A fixed, advanceable clock in the local timezone
- A recording notifier and a failure-injecting repository wrapper
- Factory helpers for stock and deposit lots
- Service, scheduler and API client fixtures
"""

import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import sessionmaker

from assetbook.app_context import AppContext, set_app_context
from assetbook.config.settings import Settings, reset_settings, set_settings
from assetbook.core.exceptions import PersistenceError
from assetbook.core.timezone import get_local_tz
from assetbook.domain.models import (
    DepositMetadata,
    InstrumentType,
    NotificationEvent,
    PortfolioItem,
)
from assetbook.domain.valuation import initial_valuation, revalue
from assetbook.main import app
from assetbook.repositories.sqlalchemy import Base, SqlAlchemyPortfolioRepository
# Import ORM models to register them with Base before creating tables
from assetbook.repositories.sqlalchemy import orm_models  # noqa: F401
from assetbook.services import (
    AccrualScheduler,
    DepositAccrualEngine,
    PortfolioService,
)

OWNER = "user-1"


# =============================================================================
# TIME HELPERS
# =============================================================================


def local_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in the configured local timezone."""
    return get_local_tz().localize(datetime(year, month, day, hour, minute, second))


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs) -> datetime:
        """Move forward by timedelta(**kwargs), keeping local wall-clock semantics."""
        naive = self._now.replace(tzinfo=None) + timedelta(**kwargs)
        self._now = get_local_tz().localize(naive)
        return self._now


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return local_datetime(2024, 6, 15, 14, 30, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=test_engine,
    )


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================


class RecordingNotifier:
    """Notifier that keeps every event for assertions."""

    def __init__(self):
        self.events: list[tuple[NotificationEvent, dict[str, Any]]] = []

    def notify(self, event_type: NotificationEvent, payload: dict[str, Any]) -> None:
        self.events.append((event_type, dict(payload)))

    def of_type(self, event_type: NotificationEvent) -> list[dict[str, Any]]:
        return [payload for kind, payload in self.events if kind == event_type]

    def clear(self) -> None:
        self.events.clear()


class FailingRepository:
    """
    Repository wrapper that fails writes for chosen items, or every read
    once read_error is set. Everything else goes to the wrapped repository.
    """

    def __init__(self, inner: SqlAlchemyPortfolioRepository):
        self._inner = inner
        self.fail_upsert_for: set[str] = set()
        self.read_error: Optional[Exception] = None

    def get_items(self, owner_id: str) -> list[PortfolioItem]:
        if self.read_error is not None:
            raise self.read_error
        return self._inner.get_items(owner_id)

    def upsert_item(self, item: PortfolioItem) -> PortfolioItem:
        if item.item_id in self.fail_upsert_for:
            raise PersistenceError("upsert_item", "injected write failure")
        return self._inner.upsert_item(item)

    def delete_item(self, item_id: str) -> None:
        self._inner.delete_item(item_id)

    def bulk_update_by_symbol(self, owner_id: str, symbol: str, new_price: Decimal) -> list[PortfolioItem]:
        return self._inner.bulk_update_by_symbol(owner_id, symbol, new_price)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def portfolio_repo(session_factory) -> SqlAlchemyPortfolioRepository:
    """Provide test PortfolioRepository."""
    return SqlAlchemyPortfolioRepository(session_factory)


@pytest.fixture
def failing_repo(portfolio_repo) -> FailingRepository:
    return FailingRepository(portfolio_repo)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def accrual_engine(portfolio_repo, clock) -> DepositAccrualEngine:
    return DepositAccrualEngine(portfolio_repo, clock=clock)


@pytest.fixture
def scheduler(portfolio_repo, accrual_engine, notifier, clock) -> AccrualScheduler:
    """Provide an AccrualScheduler firing at 09:00 local."""
    return AccrualScheduler(
        repository=portfolio_repo,
        engine=accrual_engine,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def portfolio_service(portfolio_repo, notifier, scheduler, clock) -> PortfolioService:
    """Provide test PortfolioService."""
    return PortfolioService(
        repository=portfolio_repo,
        notifier=notifier,
        scheduler=scheduler,
        clock=clock,
    )


# =============================================================================
# FACTORY HELPERS
# =============================================================================


def make_item(
    symbol: str = "THYAO",
    quantity: Any = "10",
    purchase_price: Any = "100",
    current_price: Any = None,
    instrument_type: InstrumentType = InstrumentType.STOCK,
    owner_id: str = OWNER,
    updated_at: Optional[datetime] = None,
    item_id: Optional[str] = None,
    display_name: Optional[str] = None,
    metadata: Optional[DepositMetadata] = None,
) -> PortfolioItem:
    """Build an unsaved lot with consistent derived figures."""
    item = PortfolioItem(
        item_id=item_id or str(uuid.uuid4()),
        owner_id=owner_id,
        instrument_type=instrument_type,
        symbol=symbol,
        display_name=display_name or symbol,
        quantity=quantity,
        purchase_price=purchase_price,
        current_price=purchase_price,
        metadata=metadata,
        created_at=updated_at,
        updated_at=updated_at,
        last_updated=updated_at,
    )
    valued = initial_valuation(item)
    if current_price is not None:
        valued = revalue(valued, current_price)
    return valued


def make_deposit(
    principal: Any = "100000",
    annual_interest_rate: Any = "40",
    tax_exempt_percentage: Any = "0",
    maturity_date: Optional[date] = None,
    owner_id: str = OWNER,
    symbol: Optional[str] = None,
    item_id: Optional[str] = None,
    bank_name: Optional[str] = "Ziraat",
    updated_at: Optional[datetime] = None,
) -> PortfolioItem:
    """Build an unsaved deposit lot: quantity is the principal at unit price 1."""
    item_id = item_id or str(uuid.uuid4())
    return make_item(
        symbol=symbol or item_id.upper(),
        quantity=principal,
        purchase_price="1",
        instrument_type=InstrumentType.DEPOSIT,
        owner_id=owner_id,
        item_id=item_id,
        display_name=f"{bank_name or 'Bank'} deposit",
        updated_at=updated_at,
        metadata=DepositMetadata(
            annual_interest_rate=annual_interest_rate,
            tax_exempt_percentage=tax_exempt_percentage,
            maturity_date=maturity_date,
            bank_name=bank_name,
        ),
    )


@pytest.fixture
def item_factory(portfolio_repo, fixed_now) -> Callable[..., PortfolioItem]:
    """Factory for persisted non-deposit lots."""

    def _create(**kwargs) -> PortfolioItem:
        kwargs.setdefault("updated_at", fixed_now)
        return portfolio_repo.upsert_item(make_item(**kwargs))

    return _create


@pytest.fixture
def deposit_factory(portfolio_repo, fixed_now) -> Callable[..., PortfolioItem]:
    """Factory for persisted deposit lots."""

    def _create(**kwargs) -> PortfolioItem:
        kwargs.setdefault("updated_at", fixed_now)
        return portfolio_repo.upsert_item(make_deposit(**kwargs))

    return _create


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def app_context(session_factory, notifier, clock, tmp_path) -> AppContext:
    """Application context bound to the test database, timer disabled."""
    set_settings(Settings(data_dir=tmp_path, accrual_timer_enabled=False))
    context = AppContext(session_factory=session_factory, notifier=notifier, clock=clock)
    set_app_context(context)
    yield context
    context.close()
    set_app_context(None)
    reset_settings()


@pytest.fixture
def client(app_context) -> TestClient:
    """Provide FastAPI test client with test database."""
    with TestClient(app) as c:
        yield c


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Any,
    expected: Any,
    tolerance: Decimal = Decimal("0.001"),
) -> None:
    """Assert two Decimals (or decimal strings) are equal within tolerance."""
    diff = abs(Decimal(str(actual)) - Decimal(str(expected)))
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"
