"""Clock abstraction so scheduling can be driven by tests."""

from datetime import date, datetime
from typing import Protocol

from assetbook.core.timezone import local_date, now_local


class Clock(Protocol):
    """Source of the current local time."""

    def now(self) -> datetime:
        """Return the current timezone-aware local time."""
        ...

    def today(self) -> date:
        """Return the current local calendar date."""
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return now_local()

    def today(self) -> date:
        return local_date(self.now())
