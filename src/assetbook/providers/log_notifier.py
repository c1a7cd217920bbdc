"""Notifier that writes events to the application log."""

import logging
from typing import Any

from assetbook.domain.models import NotificationEvent

# Events a user should not miss are logged louder
_LEVELS: dict[NotificationEvent, int] = {
    NotificationEvent.DAILY_RETURN_APPLIED: logging.INFO,
    NotificationEvent.MATURITY_WARNING: logging.WARNING,
    NotificationEvent.ACCRUAL_STARTED: logging.INFO,
    NotificationEvent.ACCRUAL_SKIPPED: logging.INFO,
    NotificationEvent.ACCRUAL_ERROR: logging.ERROR,
    NotificationEvent.ACCRUAL_STOPPED: logging.INFO,
    NotificationEvent.DEPOSIT_INFO_UPDATED: logging.INFO,
}


class LoggingNotifier:
    """Default delivery channel for offline operation."""

    def __init__(self, name: str = "assetbook.notifications"):
        self._logger = logging.getLogger(name)

    def notify(self, event_type: NotificationEvent, payload: dict[str, Any]) -> None:
        level = _LEVELS.get(event_type, logging.INFO)
        details = ", ".join(f"{key}={value}" for key, value in sorted(payload.items()))
        self._logger.log(level, "%s: %s", event_type.value, details)
