"""Application context wiring repositories, services and the accrual timer.

Both the HTTP layer and in-process callers obtain services from here, so
there is exactly one scheduler (and one schedule registry) per context.
"""

import logging
from datetime import time
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import sessionmaker

from assetbook.config.settings import get_settings, set_settings
from assetbook.core.clock import Clock, SystemClock
from assetbook.providers import LoggingNotifier, Notifier
from assetbook.repositories.sqlalchemy import (
    SqlAlchemyPortfolioRepository,
    get_session_factory,
    init_db,
    init_db_with_path,
    reset_database,
)
from assetbook.services import (
    AccrualScheduler,
    AccrualTimer,
    DepositAccrualEngine,
    PortfolioService,
)

logger = logging.getLogger(__name__)


class AppContext:
    """
    Composition root for the application.

    Collaborators are created lazily on first access. Tests pass their own
    session factory, notifier and clock.
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
    ):
        self._session_factory = session_factory
        self._notifier = notifier
        self._clock = clock or SystemClock()

        self._repository: Optional[SqlAlchemyPortfolioRepository] = None
        self._accrual_engine: Optional[DepositAccrualEngine] = None
        self._scheduler: Optional[AccrualScheduler] = None
        self._portfolio_service: Optional[PortfolioService] = None
        self._timer: Optional[AccrualTimer] = None

    def initialize(self, data_dir: Optional[Path] = None) -> None:
        """
        Point the context at a data directory, recreating the database.

        Any running timer is stopped and every service is recreated.
        """
        self.close()

        settings = get_settings().model_copy(update={"data_dir": data_dir})
        set_settings(settings)

        reset_database()
        init_db_with_path(settings.get_data_dir() / "assetbook.db")

        self._session_factory = None
        self._repository = None
        self._accrual_engine = None
        self._scheduler = None
        self._portfolio_service = None

    def startup(self) -> None:
        """Create tables if needed and start the accrual timer when enabled."""
        if self._session_factory is None:
            init_db()
        if get_settings().accrual_timer_enabled:
            self.start_timer()

    def start_timer(self) -> AccrualTimer:
        if self._timer is None or not self._timer.running:
            self._timer = AccrualTimer(self.scheduler, clock=self._clock)
            self._timer.start()
        return self._timer

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and self._timer.running

    # Collaborators
    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            self._notifier = LoggingNotifier()
        return self._notifier

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def repository(self) -> SqlAlchemyPortfolioRepository:
        if self._repository is None:
            self._repository = SqlAlchemyPortfolioRepository(self.session_factory)
        return self._repository

    # Service accessors
    @property
    def accrual_engine(self) -> DepositAccrualEngine:
        if self._accrual_engine is None:
            self._accrual_engine = DepositAccrualEngine(self.repository, clock=self._clock)
        return self._accrual_engine

    @property
    def scheduler(self) -> AccrualScheduler:
        """Get the AccrualScheduler instance."""
        if self._scheduler is None:
            settings = get_settings()
            self._scheduler = AccrualScheduler(
                repository=self.repository,
                engine=self.accrual_engine,
                notifier=self.notifier,
                clock=self._clock,
                run_at=time(settings.accrual_run_hour, settings.accrual_run_minute),
                maturity_warning_days=settings.maturity_warning_days,
            )
        return self._scheduler

    @property
    def portfolio(self) -> PortfolioService:
        """Get the PortfolioService instance."""
        if self._portfolio_service is None:
            self._portfolio_service = PortfolioService(
                repository=self.repository,
                notifier=self.notifier,
                scheduler=self.scheduler,
                clock=self._clock,
            )
        return self._portfolio_service

    def close(self) -> None:
        """Stop the timer and drop every accrual schedule."""
        if self._timer is not None:
            self._timer.shutdown()
            self._timer = None
        if self._scheduler is not None:
            self._scheduler.shutdown()
        logger.debug("Application context closed")


# Global application context
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set (or clear, with None) the global application context."""
    global _app_context
    _app_context = context
