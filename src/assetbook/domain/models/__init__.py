"""Domain models package."""

from assetbook.domain.models.enums import (
    InstrumentType,
    GoldVariant,
    AccrualStatus,
    SkipReason,
    NotificationEvent,
    RecommendationType,
    INSTRUMENT_LABELS,
    QUANTITY_IS_PRINCIPAL,
)
from assetbook.domain.models.portfolio_item import PortfolioItem, DepositMetadata, to_decimal
from assetbook.domain.models.schedule import AccrualSchedule, ScheduleKey

__all__ = [
    "InstrumentType",
    "GoldVariant",
    "AccrualStatus",
    "SkipReason",
    "NotificationEvent",
    "RecommendationType",
    "INSTRUMENT_LABELS",
    "QUANTITY_IS_PRINCIPAL",
    "PortfolioItem",
    "DepositMetadata",
    "to_decimal",
    "AccrualSchedule",
    "ScheduleKey",
]
