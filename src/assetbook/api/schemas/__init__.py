"""Pydantic schemas for API request/response."""

from assetbook.api.schemas.portfolio import (
    DepositTerms,
    PortfolioItemCreateRequest,
    PortfolioItemUpdateRequest,
    PortfolioItemResponse,
    PortfolioItemListResponse,
    RepriceRequest,
    RepriceResponse,
    HoldingResponse,
    PositionResponse,
    PositionsResponse,
    CategoryBucketResponse,
    SummaryResponse,
    AllocationShareResponse,
    RecommendationResponse,
    AnalysisResponse,
)
from assetbook.api.schemas.accrual import (
    AccrualResultResponse,
    StopAccrualResponse,
    StartAllResponse,
    ScheduleResponse,
    ScheduleListResponse,
    MaturityWarningResponse,
    AccrualRunReportResponse,
)

__all__ = [
    "DepositTerms",
    "PortfolioItemCreateRequest",
    "PortfolioItemUpdateRequest",
    "PortfolioItemResponse",
    "PortfolioItemListResponse",
    "RepriceRequest",
    "RepriceResponse",
    "HoldingResponse",
    "PositionResponse",
    "PositionsResponse",
    "CategoryBucketResponse",
    "SummaryResponse",
    "AllocationShareResponse",
    "RecommendationResponse",
    "AnalysisResponse",
    "AccrualResultResponse",
    "StopAccrualResponse",
    "StartAllResponse",
    "ScheduleResponse",
    "ScheduleListResponse",
    "MaturityWarningResponse",
    "AccrualRunReportResponse",
]
