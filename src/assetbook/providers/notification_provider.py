"""Notification provider protocol."""

from typing import Any, Protocol

from assetbook.domain.models import NotificationEvent


class Notifier(Protocol):
    """
    Protocol for notification delivery.

    Implementations decide the channel (push, e-mail, log); the engine only
    supplies the event type and a payload of plain values.
    """

    def notify(self, event_type: NotificationEvent, payload: dict[str, Any]) -> None:
        """Deliver one event. Implementations should not raise on delivery failure."""
        ...
