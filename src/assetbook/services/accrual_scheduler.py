"""Daily scheduling of deposit interest accrual."""

import logging
import threading
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from assetbook.core.clock import Clock, SystemClock
from assetbook.core.exceptions import AppError, NotFoundError, ValidationError
from assetbook.core.timezone import get_local_tz, local_date, to_local
from assetbook.domain.models import (
    AccrualSchedule,
    AccrualStatus,
    NotificationEvent,
    PortfolioItem,
    ScheduleKey,
    SkipReason,
)
from assetbook.domain.views import AccrualResult, AccrualRunReport, MaturityWarning
from assetbook.providers import Notifier
from assetbook.repositories.protocols import PortfolioRepository
from assetbook.services.deposit_accrual import DepositAccrualEngine, validate_deposit

logger = logging.getLogger(__name__)

DEFAULT_RUN_AT = time(9, 0)
DEFAULT_MATURITY_WARNING_DAYS = 7


class AccrualScheduler:
    """
    Drives DepositAccrualEngine once per calendar day per active deposit.

    Schedules live in a registry owned by this instance, keyed by
    ScheduleKey(owner_id, item_id). Each key has its own lock: the daily run
    and a manual accrual for the same deposit are serialized, and the
    last_calculated_date check happens under that lock, so one day's interest
    is applied at most once.

    The daily driver is explicit state: next_fire_at is set when the first
    schedule registers and advanced by run_pending(). Nothing here sleeps;
    AccrualTimer (or a test) decides when to call run_pending().
    """

    def __init__(
        self,
        repository: PortfolioRepository,
        engine: DepositAccrualEngine,
        notifier: Notifier,
        clock: Optional[Clock] = None,
        run_at: time = DEFAULT_RUN_AT,
        maturity_warning_days: int = DEFAULT_MATURITY_WARNING_DAYS,
    ):
        self._repository = repository
        self._engine = engine
        self._notifier = notifier
        self._clock = clock or SystemClock()
        self._run_at = run_at
        self._maturity_warning_days = maturity_warning_days

        self._schedules: dict[ScheduleKey, AccrualSchedule] = {}
        self._item_locks: dict[ScheduleKey, threading.Lock] = {}
        self._registry_lock = threading.RLock()
        self._next_fire_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Schedule lifecycle
    # ------------------------------------------------------------------

    def start(self, owner_id: str, item_id: str) -> AccrualResult:
        """
        Register a deposit for daily accrual and accrue today immediately.

        A deposit without usable terms is reported as SKIPPED with
        MISSING_METADATA and no schedule is created. Starting an already
        active schedule does not accrue a second time on the same day.
        """
        item = self._engine.find_item(owner_id, item_id)
        try:
            validate_deposit(item)
        except ValidationError as exc:
            logger.info("Not starting accrual for %s/%s: %s", owner_id, item_id, exc.message)
            self._notify(
                NotificationEvent.ACCRUAL_SKIPPED,
                self._payload(owner_id, item_id, item, reason=SkipReason.MISSING_METADATA.value),
            )
            return AccrualResult(
                owner_id=owner_id,
                item_id=item_id,
                status=AccrualStatus.SKIPPED,
                skip_reason=SkipReason.MISSING_METADATA,
                item=item,
                error=exc.message,
            )

        key = ScheduleKey(owner_id, item_id)
        with self._registry_lock:
            schedule = self._schedules.get(key)
            newly_started = schedule is None
            if newly_started:
                schedule = AccrualSchedule(owner_id=owner_id, item_id=item_id)
                self._schedules[key] = schedule
                if self._next_fire_at is None:
                    self._next_fire_at = self._next_run_after(self._clock.now())

        result = self._accrue_schedule(schedule)
        if newly_started:
            logger.info("Started daily accrual for %s/%s", owner_id, item_id)
            self._notify(NotificationEvent.ACCRUAL_STARTED, self._payload(owner_id, item_id, item))
        return result

    def stop(self, owner_id: str, item_id: str) -> bool:
        """
        Deregister a deposit. Returns False if it was not scheduled.

        An accrual already running for the deposit finishes; none starts after.
        """
        if not self._deregister(ScheduleKey(owner_id, item_id)):
            return False
        logger.info("Stopped daily accrual for %s/%s", owner_id, item_id)
        self._notify(NotificationEvent.ACCRUAL_STOPPED, self._payload(owner_id, item_id))
        return True

    def forget(self, owner_id: str, item_id: str) -> bool:
        """Deregister without notifying (used when the item itself is deleted)."""
        return self._deregister(ScheduleKey(owner_id, item_id))

    def start_all(
        self,
        owner_id: str,
        deposits: Optional[Iterable[PortfolioItem]] = None,
    ) -> int:
        """
        Start accrual for every deposit of owner_id that has usable terms.

        Items lacking terms are skipped, and a failure starting one deposit is
        logged without affecting the others. Returns how many schedules were
        newly registered; deposits already scheduled are not counted again.
        """
        if deposits is None:
            deposits = [item for item in self._repository.get_items(owner_id) if item.is_deposit]

        started = 0
        for item in deposits:
            if not item.is_deposit or item.metadata is None or not item.metadata.has_accrual_terms:
                logger.info("Deposit %s lacks accrual terms, not starting", item.item_id)
                continue
            if self.is_active(owner_id, item.item_id):
                continue
            try:
                self.start(owner_id, item.item_id)
            except AppError as exc:
                logger.error("Could not start accrual for %s/%s: %s", owner_id, item.item_id, exc.message)
                continue
            if self.is_active(owner_id, item.item_id):
                started += 1
        return started

    def shutdown(self) -> None:
        """Drop every schedule and stop the daily driver."""
        with self._registry_lock:
            for schedule in self._schedules.values():
                schedule.is_active = False
            self._schedules.clear()
            self._item_locks.clear()
            self._next_fire_at = None

    # ------------------------------------------------------------------
    # Accrual
    # ------------------------------------------------------------------

    def accrue_now(self, owner_id: str, item_id: str) -> AccrualResult:
        """Manually accrue one scheduled deposit for today (at most once per day)."""
        with self._registry_lock:
            schedule = self._schedules.get(ScheduleKey(owner_id, item_id))
        if schedule is None:
            raise NotFoundError("Accrual schedule", f"{owner_id}/{item_id}")
        return self._accrue_schedule(schedule)

    def run_pending(self, now: Optional[datetime] = None) -> Optional[AccrualRunReport]:
        """
        Run the daily batch if next_fire_at has been reached.

        Missed fires collapse into one run; next_fire_at then moves to the
        first run time after now.
        """
        now = now or self._clock.now()
        with self._registry_lock:
            fire_at = self._next_fire_at
        if fire_at is None or now < fire_at:
            return None

        try:
            return self.run_daily(local_date(now))
        finally:
            with self._registry_lock:
                if self._next_fire_at is not None:
                    self._next_fire_at = self._next_run_after(now)

    def run_daily(self, today: Optional[date] = None) -> AccrualRunReport:
        """
        Accrue every active schedule not yet accrued today, then warn about maturities.

        A failure on one deposit is recorded in the report and never stops the
        remaining deposits.
        """
        today = today or self._clock.today()
        with self._registry_lock:
            schedules = [s for s in self._schedules.values() if s.is_active]

        report = AccrualRunReport(run_date=today)
        for schedule in schedules:
            if not schedule.is_due(today):
                continue
            result = self._accrue_schedule(schedule, today)
            if result.status == AccrualStatus.APPLIED:
                report.applied.append(result)
            elif result.status == AccrualStatus.FAILED:
                report.failed.append(result)
            else:
                report.skipped.append(result)

        owners = sorted({schedule.owner_id for schedule in schedules})
        report.maturity_warnings = self._check_maturities(owners, today)

        logger.info(
            "Daily accrual for %s: %d applied, %d skipped, %d failed, %d maturity warnings",
            today.isoformat(),
            len(report.applied),
            len(report.skipped),
            len(report.failed),
            len(report.maturity_warnings),
        )
        return report

    def _accrue_schedule(self, schedule: AccrualSchedule, today: Optional[date] = None) -> AccrualResult:
        """Accrue one schedule under its item lock; never raises."""
        try:
            return self._accrue_under_lock(schedule, today)
        finally:
            self._discard_lock(schedule.key)

    def _accrue_under_lock(self, schedule: AccrualSchedule, today: Optional[date]) -> AccrualResult:
        today = today or self._clock.today()
        owner_id, item_id = schedule.owner_id, schedule.item_id

        with self._lock_for(schedule.key):
            if not self._is_registered(schedule):
                return AccrualResult(owner_id, item_id, AccrualStatus.SKIPPED, SkipReason.INACTIVE)
            if not schedule.is_due(today):
                logger.debug("Deposit %s/%s already accrued for %s", owner_id, item_id, today)
                return AccrualResult(
                    owner_id, item_id, AccrualStatus.SKIPPED, SkipReason.ALREADY_ACCRUED_TODAY
                )

            try:
                result = self._engine.accrue(owner_id, item_id, today)
            except ValidationError as exc:
                result = AccrualResult(
                    owner_id,
                    item_id,
                    AccrualStatus.SKIPPED,
                    SkipReason.MISSING_METADATA,
                    error=exc.message,
                )
            except Exception as exc:
                logger.exception("Accrual failed for %s/%s", owner_id, item_id)
                self._notify(
                    NotificationEvent.ACCRUAL_ERROR,
                    self._payload(owner_id, item_id, error=str(exc)),
                )
                return AccrualResult(owner_id, item_id, AccrualStatus.FAILED, error=str(exc))

            if result.applied:
                schedule.last_calculated_date = today
                self._notify(
                    NotificationEvent.DAILY_RETURN_APPLIED,
                    self._payload(
                        owner_id,
                        item_id,
                        result.item,
                        net_interest=result.interest.net,
                        total_value=result.item.total_value,
                    ),
                )
            else:
                self._notify(
                    NotificationEvent.ACCRUAL_SKIPPED,
                    self._payload(owner_id, item_id, result.item, reason=result.skip_reason.value),
                )
            return result

    def _check_maturities(self, owner_ids: list[str], today: date) -> list[MaturityWarning]:
        """Warn for deposits maturing today or within maturity_warning_days."""
        warnings: list[MaturityWarning] = []
        for owner_id in owner_ids:
            try:
                items = self._repository.get_items(owner_id)
            except Exception:
                logger.exception("Maturity check failed for %s", owner_id)
                continue

            for item in items:
                maturity = item.metadata.maturity_date if item.metadata else None
                if not item.is_deposit or maturity is None:
                    continue
                days_left = (maturity - today).days
                if 0 <= days_left <= self._maturity_warning_days:
                    warning = MaturityWarning(
                        owner_id=owner_id,
                        item_id=item.item_id,
                        display_name=item.display_name,
                        maturity_date=maturity,
                        days_left=days_left,
                    )
                    warnings.append(warning)
                    self._notify(
                        NotificationEvent.MATURITY_WARNING,
                        self._payload(
                            owner_id,
                            item.item_id,
                            item,
                            maturity_date=maturity.isoformat(),
                            days_left=days_left,
                        ),
                    )
        return warnings

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def active_schedules(self, owner_id: str) -> list[AccrualSchedule]:
        """Return copies of the owner's active schedules."""
        with self._registry_lock:
            return [
                AccrualSchedule(s.owner_id, s.item_id, s.last_calculated_date, s.is_active)
                for s in self._schedules.values()
                if s.owner_id == owner_id and s.is_active
            ]

    def is_active(self, owner_id: str, item_id: str) -> bool:
        with self._registry_lock:
            schedule = self._schedules.get(ScheduleKey(owner_id, item_id))
            return schedule is not None and schedule.is_active

    @property
    def next_fire_at(self) -> Optional[datetime]:
        with self._registry_lock:
            return self._next_fire_at

    @property
    def run_at(self) -> time:
        """Local wall-clock time of the daily batch."""
        return self._run_at

    @property
    def is_running(self) -> bool:
        """True while at least one schedule keeps the daily driver armed."""
        return self.next_fire_at is not None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _deregister(self, key: ScheduleKey) -> bool:
        with self._registry_lock:
            schedule = self._schedules.pop(key, None)
            if schedule is None:
                return False
            schedule.is_active = False
            if not self._schedules:
                self._next_fire_at = None
        self._discard_lock(key)
        return True

    def _discard_lock(self, key: ScheduleKey) -> None:
        """Drop the item lock of a deregistered key unless an accrual holds it."""
        with self._registry_lock:
            if key in self._schedules:
                return
            lock = self._item_locks.get(key)
            if lock is not None and not lock.locked():
                del self._item_locks[key]

    def _is_registered(self, schedule: AccrualSchedule) -> bool:
        with self._registry_lock:
            return schedule.is_active and self._schedules.get(schedule.key) is schedule

    def _lock_for(self, key: ScheduleKey) -> threading.Lock:
        with self._registry_lock:
            lock = self._item_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._item_locks[key] = lock
            return lock

    def _next_run_after(self, now: datetime) -> datetime:
        """First local run_at strictly after now."""
        tz = get_local_tz()
        local_now = to_local(now)
        candidate = tz.localize(datetime.combine(local_now.date(), self._run_at))
        if candidate <= local_now:
            candidate = tz.localize(datetime.combine(local_now.date() + timedelta(days=1), self._run_at))
        return candidate

    def _notify(self, event_type: NotificationEvent, payload: dict[str, Any]) -> None:
        try:
            self._notifier.notify(event_type, payload)
        except Exception:
            logger.exception("Notification %s could not be delivered", event_type.value)

    @staticmethod
    def _payload(
        owner_id: str,
        item_id: str,
        item: Optional[PortfolioItem] = None,
        **extra: Any,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"owner_id": owner_id, "item_id": item_id}
        if item is not None:
            payload["display_name"] = item.display_name
        payload.update(extra)
        return payload


class AccrualTimer:
    """
    Calls AccrualScheduler.run_pending() at the daily run time.

    The wall-clock trigger is an APScheduler cron job in the local timezone.
    run_pending() still decides whether a batch is due, so a fire with no
    armed schedule is a no-op and missed days collapse into one run.
    """

    JOB_ID = "deposit-accrual-daily"

    def __init__(
        self,
        scheduler: AccrualScheduler,
        clock: Optional[Clock] = None,
        run_at: Optional[time] = None,
        misfire_grace_seconds: int = 3600,
    ):
        self._scheduler = scheduler
        self._clock = clock or SystemClock()
        self._run_at = run_at or scheduler.run_at

        tz = get_local_tz()
        self._background = BackgroundScheduler(timezone=tz)
        self._background.add_job(
            self.fire,
            CronTrigger(hour=self._run_at.hour, minute=self._run_at.minute, timezone=tz),
            id=self.JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=misfire_grace_seconds,
        )

    def fire(self) -> Optional[AccrualRunReport]:
        """Run the daily batch if it is due; errors are logged, never raised."""
        try:
            return self._scheduler.run_pending(self._clock.now())
        except Exception:
            logger.exception("Daily accrual run failed")
            return None

    def start(self) -> None:
        self._background.start()
        logger.info("Accrual timer started, daily at %s", self._run_at.strftime("%H:%M"))

    def shutdown(self, wait: bool = True) -> None:
        if self._background.running:
            self._background.shutdown(wait=wait)
            logger.info("Accrual timer stopped")

    @property
    def running(self) -> bool:
        return self._background.running

    @property
    def next_run_time(self) -> Optional[datetime]:
        """Next wall-clock fire of the cron job (None until started)."""
        job = self._background.get_job(self.JOB_ID)
        return getattr(job, "next_run_time", None) if job is not None else None
