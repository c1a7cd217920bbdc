"""Portfolio-wide analytics over raw lots or consolidated positions."""

from collections import OrderedDict
from decimal import Decimal
from typing import Optional, Sequence

from assetbook.core.timezone import now_local
from assetbook.domain.models import InstrumentType, RecommendationType
from assetbook.domain.valuation import HUNDRED, ZERO, return_percentage
from assetbook.domain.views import (
    AllocationShare,
    CategoryBucket,
    Holding,
    PortfolioAnalysis,
    PortfolioSummary,
    Recommendation,
)

# Number of distinct instrument categories that earns a full diversification score
TARGET_CATEGORY_COUNT = 4

HIGH_CONCENTRATION_PCT = Decimal("70")
MEDIUM_CONCENTRATION_PCT = Decimal("50")

_STABILITY_PENALTY: dict[str, Decimal] = {
    "high": Decimal("30"),
    "medium": Decimal("15"),
    "low": Decimal("0"),
}

# Recommendation rules
MAX_RECOMMENDATIONS = 5
MIN_CATEGORY_COUNT = 3
STRONG_PERFORMER_PCT = Decimal("20")
WEAK_PERFORMER_PCT = Decimal("-15")

# Suggestion, strength and weakness thresholds
LOW_DIVERSIFICATION = Decimal("50")
GOOD_DIVERSIFICATION = Decimal("70")
POOR_DIVERSIFICATION = Decimal("40")
CONCENTRATION_WARNING_PCT = Decimal("60")
MIN_HOLDINGS = 3
GAINER_PCT = Decimal("10")
LOSER_PCT = Decimal("-10")


def summarize(items: Sequence[Holding]) -> PortfolioSummary:
    """
    Build totals, performers and the category breakdown.

    Formula: return_percentage = (total_value - total_investment) / total_investment * 100,
    or 0 when nothing was invested. The bucket values sum exactly to total_value.
    """
    as_of = now_local()
    if not items:
        return PortfolioSummary(as_of=as_of)

    breakdown = category_breakdown(items)
    total_value = sum((bucket.value for bucket in breakdown), ZERO)
    total_investment = sum((item.total_investment for item in items), ZERO)
    total_return = total_value - total_investment

    best, worst = _performers(items)

    return PortfolioSummary(
        total_value=total_value,
        total_investment=total_investment,
        total_return=total_return,
        return_percentage=return_percentage(total_return, total_investment),
        best_performer=best,
        worst_performer=worst,
        category_breakdown=breakdown,
        diversification_score=diversification_score(items),
        item_count=len(items),
        as_of=as_of,
    )


def category_breakdown(items: Sequence[Holding]) -> list[CategoryBucket]:
    """Group holdings by instrument type in order of first appearance."""
    buckets: "OrderedDict[InstrumentType, CategoryBucket]" = OrderedDict()
    for item in items:
        bucket = buckets.get(item.instrument_type)
        if bucket is None:
            bucket = CategoryBucket(
                instrument_type=item.instrument_type,
                label=item.instrument_type.label,
                value=ZERO,
                count=0,
            )
            buckets[item.instrument_type] = bucket
        bucket.value += item.total_value
        bucket.count += 1
    return list(buckets.values())


def diversification_score(items: Sequence[Holding]) -> Decimal:
    """Score 0-100: distinct categories over TARGET_CATEGORY_COUNT."""
    distinct = len({item.instrument_type for item in items})
    score = Decimal(distinct) / Decimal(TARGET_CATEGORY_COUNT) * HUNDRED
    return min(HUNDRED, score)


def analyze(items: Sequence[Holding]) -> PortfolioAnalysis:
    """
    Derive allocation shares and a concentration-based risk level.

    risk_level is "high" when one category exceeds 70% of value, "medium"
    above 50%, otherwise "low". stability_score is the diversification score
    minus a risk penalty, clamped to 0-100.
    """
    breakdown = category_breakdown(items)
    total_value = sum((bucket.value for bucket in breakdown), ZERO)

    allocation = [
        AllocationShare(
            instrument_type=bucket.instrument_type,
            label=bucket.label,
            value=bucket.value,
            percentage=(bucket.value / total_value * HUNDRED) if total_value > ZERO else ZERO,
        )
        for bucket in breakdown
    ]
    allocation.sort(key=lambda share: share.value, reverse=True)

    max_concentration = max((share.percentage for share in allocation), default=ZERO)
    if max_concentration > HIGH_CONCENTRATION_PCT:
        risk_level = "high"
    elif max_concentration > MEDIUM_CONCENTRATION_PCT:
        risk_level = "medium"
    else:
        risk_level = "low"

    diversification = diversification_score(items)
    stability = max(ZERO, min(HUNDRED, diversification - _STABILITY_PENALTY[risk_level]))

    suggestions = []
    if diversification < LOW_DIVERSIFICATION:
        suggestions.append("Consider diversifying across more asset types")
    if max_concentration > CONCENTRATION_WARNING_PCT:
        suggestions.append("Holdings are concentrated in a single asset type")
    if len(items) < MIN_HOLDINGS:
        suggestions.append("Consider adding more holdings")

    strengths = []
    if diversification >= GOOD_DIVERSIFICATION:
        strengths.append("Well diversified portfolio")
    if risk_level == "low":
        strengths.append("Low risk level")
    if any(item.return_percentage > GAINER_PCT for item in items):
        strengths.append("Contains strongly performing holdings")

    weaknesses = []
    if diversification < POOR_DIVERSIFICATION:
        weaknesses.append("Insufficient diversification")
    if risk_level == "high":
        weaknesses.append("High concentration risk")
    if any(item.return_percentage < LOSER_PCT for item in items):
        weaknesses.append("Contains underperforming holdings")

    return PortfolioAnalysis(
        diversification_score=diversification,
        risk_level=risk_level,
        stability_score=stability,
        max_concentration=max_concentration,
        allocation=allocation,
        recommendations=recommend(items),
        suggestions=suggestions,
        strengths=strengths,
        weaknesses=weaknesses,
        as_of=now_local(),
    )


def recommend(items: Sequence[Holding]) -> list[Recommendation]:
    """
    Rule-based advice, at most MAX_RECOMMENDATIONS entries.

    An empty portfolio gets first-investment advice. Otherwise: diversify
    below MIN_CATEGORY_COUNT categories, hold the best performer above
    +20%, review the worst performer below -15%, and note a positive
    overall return.
    """
    if not items:
        return [
            Recommendation(
                type=RecommendationType.BUY,
                title="Make your first investment",
                description="The portfolio is empty. Consider building a diversified "
                "portfolio across several asset types.",
                priority="high",
                reasoning="Starting early lets returns compound for longer.",
                confidence=90,
                risk="medium",
                expected_return=Decimal("8"),
            )
        ]

    recommendations: list[Recommendation] = []
    categories = len({item.instrument_type for item in items})
    if categories < MIN_CATEGORY_COUNT:
        recommendations.append(
            Recommendation(
                type=RecommendationType.DIVERSIFY,
                title="Diversify your portfolio",
                description=f"The portfolio holds only {categories} asset type(s). "
                "Spreading across more types lowers risk.",
                priority="medium",
                reasoning="Diversification reduces risk and steadies returns.",
                confidence=85,
                risk="low",
                expected_return=ZERO,
            )
        )

    best, worst = _performers(items)
    if best.return_percentage > STRONG_PERFORMER_PCT:
        recommendations.append(
            Recommendation(
                type=RecommendationType.HOLD,
                title=f"Keep your {best.display_name} position",
                description=f"{best.display_name} is returning {best.return_percentage:.2f}%.",
                priority="medium",
                reasoning="Keeping strong performers supports portfolio value.",
                confidence=80,
                risk="low",
                expected_return=best.return_percentage,
                symbol=best.symbol,
            )
        )
    if worst.return_percentage < WEAK_PERFORMER_PCT:
        recommendations.append(
            Recommendation(
                type=RecommendationType.WARNING,
                title=f"Review your {worst.display_name} position",
                description=f"{worst.display_name} is down {worst.return_percentage:.2f}%.",
                priority="high",
                reasoning="Persistent losers drag down overall performance.",
                confidence=75,
                risk="high",
                expected_return=worst.return_percentage,
                symbol=worst.symbol,
            )
        )

    overall = summarize(items).return_percentage
    if overall > ZERO:
        recommendations.append(
            Recommendation(
                type=RecommendationType.HOLD,
                title="Portfolio performance is positive",
                description=f"The portfolio is returning {overall:.2f}%. "
                "The current strategy is working.",
                priority="low",
                reasoning="Keeping a strategy that produces positive returns is sensible.",
                confidence=70,
                risk="low",
                expected_return=overall,
            )
        )

    return recommendations[:MAX_RECOMMENDATIONS]


def _performers(items: Sequence[Holding]) -> tuple[Optional[Holding], Optional[Holding]]:
    best: Optional[Holding] = None
    worst: Optional[Holding] = None
    for item in items:
        if best is None or item.return_percentage > best.return_percentage:
            best = item
        if worst is None or item.return_percentage < worst.return_percentage:
            worst = item
    return best, worst
