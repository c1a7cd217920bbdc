"""Pydantic schemas for portfolio endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from assetbook.domain.models.enums import InstrumentType, RecommendationType


class DepositTerms(BaseModel):
    """Deposit terms, used in requests and responses."""

    model_config = {"from_attributes": True}

    annual_interest_rate: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Nominal yearly rate in percent (40 means 40%)",
    )
    tax_exempt_percentage: Optional[Decimal] = Field(
        default=None,
        ge=0,
        le=100,
        description="Share of principal that earns no interest",
    )
    maturity_date: Optional[date] = None
    bank_name: Optional[str] = Field(default=None, max_length=100)


class PortfolioItemCreateRequest(BaseModel):
    """Request schema for adding a purchase lot."""

    instrument_type: InstrumentType = Field(..., description="Instrument category")
    display_name: str = Field(..., min_length=1, max_length=255)
    quantity: Decimal = Field(..., ge=0, description="Units held, or principal for deposits")
    purchase_price: Decimal = Field(..., ge=0)
    symbol: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Grouping key; deposits default to their item id",
    )
    purchase_date: Optional[date] = None
    deposit: Optional[DepositTerms] = None

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v and v.strip() else None


class PortfolioItemUpdateRequest(BaseModel):
    """Request schema for editing a lot (partial update)."""

    display_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    quantity: Optional[Decimal] = Field(default=None, ge=0)
    purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    current_price: Optional[Decimal] = Field(default=None, ge=0)
    purchase_date: Optional[date] = None


class PortfolioItemResponse(BaseModel):
    """Response schema for a single lot."""

    model_config = {"from_attributes": True}

    item_id: str
    owner_id: str
    instrument_type: InstrumentType
    symbol: str
    display_name: str
    quantity: Decimal
    purchase_price: Decimal
    current_price: Decimal
    total_value: Decimal
    total_return: Decimal
    return_percentage: Decimal
    purchase_date: Optional[date] = None
    metadata: Optional[DepositTerms] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    version: int


class PortfolioItemListResponse(BaseModel):
    """Response schema for listing lots."""

    items: list[PortfolioItemResponse]
    count: int


class RepriceRequest(BaseModel):
    """Request schema for repricing every lot of one symbol."""

    symbol: str = Field(..., min_length=1, max_length=64)
    price: Decimal = Field(..., ge=0)

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()


class RepriceResponse(BaseModel):
    """Response schema for a repricing."""

    symbol: str
    price: Decimal
    updated_count: int
    items: list[PortfolioItemResponse]


class HoldingResponse(BaseModel):
    """A lot or consolidated position as seen by analytics."""

    model_config = {"from_attributes": True}

    symbol: str
    display_name: str
    instrument_type: InstrumentType
    quantity: Decimal
    purchase_price: Decimal
    current_price: Decimal
    total_value: Decimal
    total_return: Decimal
    return_percentage: Decimal


class PositionResponse(HoldingResponse):
    """Response schema for a consolidated position."""

    owner_id: str
    cost_basis: Decimal
    lot_count: int
    lot_ids: list[str]
    updated_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class PositionsResponse(BaseModel):
    """Response schema for consolidated positions."""

    positions: list[PositionResponse]
    count: int


class CategoryBucketResponse(BaseModel):
    model_config = {"from_attributes": True}

    instrument_type: InstrumentType
    label: str
    value: Decimal
    count: int


class SummaryResponse(BaseModel):
    """Response schema for portfolio totals."""

    model_config = {"from_attributes": True}

    total_value: Decimal
    total_investment: Decimal
    total_return: Decimal
    return_percentage: Decimal
    best_performer: Optional[HoldingResponse] = None
    worst_performer: Optional[HoldingResponse] = None
    category_breakdown: list[CategoryBucketResponse]
    diversification_score: Decimal
    item_count: int
    as_of: Optional[datetime] = None


class AllocationShareResponse(BaseModel):
    model_config = {"from_attributes": True}

    instrument_type: InstrumentType
    label: str
    value: Decimal
    percentage: Decimal


class RecommendationResponse(BaseModel):
    model_config = {"from_attributes": True}

    type: RecommendationType
    title: str
    description: str
    priority: str
    reasoning: str
    confidence: int
    risk: str
    expected_return: Optional[Decimal] = None
    symbol: Optional[str] = None


class AnalysisResponse(BaseModel):
    """Response schema for allocation and risk analysis."""

    model_config = {"from_attributes": True}

    diversification_score: Decimal
    risk_level: str
    stability_score: Decimal
    max_concentration: Decimal
    allocation: list[AllocationShareResponse]
    recommendations: list[RecommendationResponse] = []
    suggestions: list[str] = []
    strengths: list[str] = []
    weaknesses: list[str] = []
    as_of: Optional[datetime] = None
