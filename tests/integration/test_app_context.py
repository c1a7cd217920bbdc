"""
Integration tests for AppContext wiring against a file-backed SQLite database.

Tests cover:
- Startup creating the database under data_dir
- Reinitializing onto a new data directory
- Starting and stopping the accrual timer
"""

from decimal import Decimal

import pytest

from assetbook.app_context import AppContext
from assetbook.config.settings import Settings, get_settings, reset_settings, set_settings
from assetbook.domain.models import InstrumentType
from assetbook.repositories.sqlalchemy import reset_database
from assetbook.services import PortfolioItemCreate

from tests.conftest import OWNER


@pytest.fixture
def file_settings(tmp_path):
    reset_database()
    set_settings(Settings(data_dir=tmp_path, accrual_timer_enabled=False))
    yield get_settings()
    reset_database()
    reset_settings()


def add_stock(context: AppContext):
    return context.portfolio.add_item(
        PortfolioItemCreate(
            owner_id=OWNER,
            instrument_type=InstrumentType.STOCK,
            display_name="Aselsan",
            quantity=Decimal("3"),
            purchase_price=Decimal("50"),
            symbol="ASELS",
        )
    )


class TestStartup:
    def test_startup_creates_database_in_data_dir(self, file_settings, clock, tmp_path):
        """
        GIVEN settings pointing at an empty data directory
        WHEN the context starts up
        THEN the database file exists and services can write to it
        """
        context = AppContext(clock=clock)

        context.startup()
        add_stock(context)

        assert (tmp_path / "assetbook.db").exists()
        assert len(context.portfolio.list_items(OWNER)) == 1
        assert not context.timer_running
        context.close()

    def test_initialize_switches_data_dir(self, file_settings, clock, tmp_path):
        context = AppContext(clock=clock)
        context.startup()
        add_stock(context)

        other_dir = tmp_path / "other"
        context.initialize(other_dir)

        assert (other_dir / "assetbook.db").exists()
        assert context.portfolio.list_items(OWNER) == []
        assert get_settings().accrual_timer_enabled is False
        context.close()

    def test_services_share_one_scheduler(self, file_settings, clock):
        context = AppContext(clock=clock)

        assert context.scheduler is context.scheduler
        assert context.accrual_engine is context.accrual_engine


class TestTimer:
    def test_timer_starts_and_stops(self, session_factory, clock, file_settings):
        """
        GIVEN a context with its own session factory
        WHEN the timer is started and the context closed
        THEN the timer thread runs, then stops, and schedules are dropped
        """
        context = AppContext(session_factory=session_factory, clock=clock)

        timer = context.start_timer()

        assert context.timer_running
        assert context.start_timer() is timer
        context.close()
        assert not context.timer_running
        assert not timer.running

    def test_startup_starts_timer_when_enabled(self, session_factory, clock, tmp_path):
        set_settings(Settings(data_dir=tmp_path, accrual_timer_enabled=True))
        context = AppContext(session_factory=session_factory, clock=clock)
        try:
            context.startup()
            assert context.timer_running
        finally:
            context.close()
            reset_settings()
