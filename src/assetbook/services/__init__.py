"""Business logic services."""

from assetbook.services.consolidation import consolidate, merge_lots, sort_lots
from assetbook.services.analytics import (
    TARGET_CATEGORY_COUNT,
    analyze,
    category_breakdown,
    diversification_score,
    recommend,
    summarize,
)
from assetbook.services.deposit_accrual import (
    DepositAccrualEngine,
    apply_daily_interest,
    compute_daily_interest,
    validate_deposit,
)
from assetbook.services.accrual_scheduler import AccrualScheduler, AccrualTimer
from assetbook.services.portfolio_service import (
    DepositInfoUpdate,
    PortfolioItemCreate,
    PortfolioItemUpdate,
    PortfolioService,
)

__all__ = [
    "consolidate",
    "merge_lots",
    "sort_lots",
    "TARGET_CATEGORY_COUNT",
    "analyze",
    "category_breakdown",
    "diversification_score",
    "recommend",
    "summarize",
    "DepositAccrualEngine",
    "apply_daily_interest",
    "compute_daily_interest",
    "validate_deposit",
    "AccrualScheduler",
    "AccrualTimer",
    "DepositInfoUpdate",
    "PortfolioItemCreate",
    "PortfolioItemUpdate",
    "PortfolioService",
]
