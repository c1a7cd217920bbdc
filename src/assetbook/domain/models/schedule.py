"""Accrual schedule state."""

from dataclasses import dataclass
from datetime import date
from typing import NamedTuple, Optional


class ScheduleKey(NamedTuple):
    """Registry key for one deposit's accrual schedule."""

    owner_id: str
    item_id: str


@dataclass
class AccrualSchedule:
    """
    Per-deposit accrual state held by an AccrualScheduler.

    last_calculated_date is compared by calendar date only; None means
    interest has never been applied under this schedule.
    """

    owner_id: str
    item_id: str
    last_calculated_date: Optional[date] = None
    is_active: bool = True

    @property
    def key(self) -> ScheduleKey:
        return ScheduleKey(self.owner_id, self.item_id)

    def is_due(self, today: date) -> bool:
        """Return True if interest has not yet been applied for `today`."""
        return self.last_calculated_date is None or self.last_calculated_date < today
