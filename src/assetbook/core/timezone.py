"""Timezone utilities for the portfolio's local wall-clock time."""

from datetime import date, datetime

import pytz
from dateutil import parser as date_parser

from assetbook.config.settings import get_settings


def get_local_tz() -> pytz.BaseTzInfo:
    """Return the configured local timezone."""
    return pytz.timezone(get_settings().timezone)


def now_local() -> datetime:
    """Return current time in the local timezone."""
    return datetime.now(get_local_tz())


def to_local(dt: datetime) -> datetime:
    """Convert a datetime to the local timezone."""
    tz = get_local_tz()
    if dt.tzinfo is None:
        # Assume naive datetime is already local
        return tz.localize(dt)
    return dt.astimezone(tz)


def local_date(dt: datetime) -> date:
    """Return the local calendar date of a datetime."""
    return to_local(dt).date()


def parse_date(value: str) -> date:
    """Parse a date string (ISO or any dateutil-readable form)."""
    return date_parser.parse(value).date()
