"""Domain layer - pure business models with no external dependencies."""

from assetbook.domain.models import (
    PortfolioItem,
    DepositMetadata,
    AccrualSchedule,
    ScheduleKey,
    InstrumentType,
    GoldVariant,
    AccrualStatus,
    SkipReason,
    NotificationEvent,
)

__all__ = [
    "PortfolioItem",
    "DepositMetadata",
    "AccrualSchedule",
    "ScheduleKey",
    "InstrumentType",
    "GoldVariant",
    "AccrualStatus",
    "SkipReason",
    "NotificationEvent",
]
