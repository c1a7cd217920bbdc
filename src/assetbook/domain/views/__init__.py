"""View models for service outputs."""

from assetbook.domain.views.portfolio import (
    ConsolidatedPosition,
    Holding,
    CategoryBucket,
    PortfolioSummary,
    AllocationShare,
    PortfolioAnalysis,
    Recommendation,
)
from assetbook.domain.views.accrual import (
    DailyInterest,
    AccrualResult,
    MaturityWarning,
    AccrualRunReport,
)

__all__ = [
    "ConsolidatedPosition",
    "Holding",
    "CategoryBucket",
    "PortfolioSummary",
    "AllocationShare",
    "PortfolioAnalysis",
    "Recommendation",
    "DailyInterest",
    "AccrualResult",
    "MaturityWarning",
    "AccrualRunReport",
]
