"""View models for consolidation and analytics outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from assetbook.domain.models import InstrumentType, PortfolioItem, RecommendationType


@dataclass
class ConsolidatedPosition:
    """Merged view of every lot one owner holds in one symbol (never persisted)."""

    owner_id: str
    symbol: str
    display_name: str
    instrument_type: InstrumentType
    quantity: Decimal
    purchase_price: Decimal
    current_price: Decimal
    total_value: Decimal
    total_return: Decimal
    return_percentage: Decimal
    cost_basis: Decimal
    lot_count: int = 1
    lot_ids: list[str] = field(default_factory=list)
    updated_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @property
    def is_deposit(self) -> bool:
        return self.instrument_type == InstrumentType.DEPOSIT

    @property
    def total_investment(self) -> Decimal:
        """Cost basis summed over the merged lots."""
        return self.cost_basis


# Analytics accept raw lots or consolidated positions
Holding = Union[PortfolioItem, ConsolidatedPosition]


@dataclass
class CategoryBucket:
    """Value and count of holdings for one instrument type."""

    instrument_type: InstrumentType
    label: str
    value: Decimal
    count: int


@dataclass
class PortfolioSummary:
    """Portfolio-wide totals and performers."""

    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    total_investment: Decimal = field(default_factory=lambda: Decimal("0"))
    total_return: Decimal = field(default_factory=lambda: Decimal("0"))
    return_percentage: Decimal = field(default_factory=lambda: Decimal("0"))
    best_performer: Optional[Holding] = None
    worst_performer: Optional[Holding] = None
    category_breakdown: list[CategoryBucket] = field(default_factory=list)
    diversification_score: Decimal = field(default_factory=lambda: Decimal("0"))
    item_count: int = 0
    as_of: Optional[datetime] = None


@dataclass
class AllocationShare:
    """Share of total value held in one instrument type."""

    instrument_type: InstrumentType
    label: str
    value: Decimal
    percentage: Decimal


@dataclass
class Recommendation:
    """One rule-based piece of advice."""

    type: RecommendationType
    title: str
    description: str
    priority: str
    reasoning: str
    confidence: int
    risk: str
    expected_return: Optional[Decimal] = None
    symbol: Optional[str] = None


@dataclass
class PortfolioAnalysis:
    """Concentration-based risk view of a portfolio, with advice."""

    diversification_score: Decimal
    risk_level: str
    stability_score: Decimal
    max_concentration: Decimal
    allocation: list[AllocationShare] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    as_of: Optional[datetime] = None
