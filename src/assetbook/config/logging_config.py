"""Logging configuration."""

import logging
import sys
from typing import Optional

from assetbook.config.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"

# Loggers of the daily accrual run, tunable apart from the app level
ACCRUAL_LOGGERS = (
    "assetbook.services.accrual_scheduler",
    "assetbook.services.deposit_accrual",
)


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure application logging."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=_level(settings.log_level),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    accrual_level = _level(settings.accrual_log_level) if settings.accrual_log_level else logging.NOTSET
    for name in ACCRUAL_LOGGERS:
        logging.getLogger(name).setLevel(accrual_level)

    # Reduce noise from third-party libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
