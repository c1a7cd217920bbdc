"""Core utilities and shared functionality."""

from assetbook.core.timezone import (
    get_local_tz,
    now_local,
    to_local,
    local_date,
    parse_date,
)
from assetbook.core.clock import Clock, SystemClock
from assetbook.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    PersistenceError,
    ConcurrencyConflict,
)

__all__ = [
    "get_local_tz",
    "now_local",
    "to_local",
    "local_date",
    "parse_date",
    "Clock",
    "SystemClock",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "PersistenceError",
    "ConcurrencyConflict",
]
