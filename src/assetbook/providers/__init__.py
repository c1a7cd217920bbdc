"""Collaborator providers (notification delivery)."""

from assetbook.providers.notification_provider import Notifier
from assetbook.providers.log_notifier import LoggingNotifier

__all__ = [
    "Notifier",
    "LoggingNotifier",
]
