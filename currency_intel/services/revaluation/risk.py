# currency_intel/services/revaluation/risk.py
"""
Currency risk scoring and recommendations.

All functions are pure: inputs in, result out, no I/O.

Scoring model (weights are fixed, see constants.py):
    concentration = min(100, Σ pct of non-base currencies above 30% × 2)
    volatility    = elevated currencies / max(1, currencies assessed) × 100
    loss          = 0 if total P&L ≥ 0 else min(100, |total P&L| / 1000)
    composite     = round(0.4 × concentration + 0.4 × volatility + 0.2 × loss)

Level: high if the unrounded weighted sum > 70, medium if > 40, otherwise low.
"""

from decimal import Decimal, ROUND_HALF_UP

from currency_intel.services.constants import (
    CONCENTRATION_MULTIPLIER,
    CONCENTRATION_WEIGHT,
    HIGH_CONCENTRATION_THRESHOLD,
    HIGH_RISK_THRESHOLD,
    HUNDRED,
    LOSS_SCORE_DIVISOR,
    LOSS_WEIGHT,
    MEDIUM_RISK_THRESHOLD,
    SCORE_CAP,
    VOLATILITY_WEIGHT,
    ZERO,
)
from currency_intel.services.forex.types import VolatilityClass
from currency_intel.services.revaluation.types import (
    ConcentrationRisk,
    CurrencyExposure,
    Recommendation,
    RecommendationCategory,
    RecommendationPriority,
    RiskLevel,
    VolatilityAssessment,
)


DIVERSIFICATION_MESSAGE = "Your currency portfolio has high risk. Consider diversifying your holdings."
BALANCED_MESSAGE = "Your currency portfolio appears well-balanced."


# =============================================================================
# COMPONENT SCORES
# =============================================================================

def find_concentration_risks(
        exposures: list[CurrencyExposure],
        base_currency: str,
) -> list[ConcentrationRisk]:
    """Non-base currencies holding more than the concentration threshold."""
    return [
        ConcentrationRisk(
            currency=exposure.currency,
            percentage=exposure.percentage,
            value_in_base=exposure.value_in_base,
        )
        for exposure in exposures
        if exposure.currency != base_currency and exposure.percentage > HIGH_CONCENTRATION_THRESHOLD
    ]


def concentration_score(concentration_risks: list[ConcentrationRisk]) -> Decimal:
    total = sum((risk.percentage for risk in concentration_risks), ZERO)
    return min(SCORE_CAP, total * CONCENTRATION_MULTIPLIER)


def volatility_score(assessments: list[VolatilityAssessment]) -> Decimal:
    elevated = sum(1 for a in assessments if a.volatility.is_elevated)
    return Decimal(elevated) / Decimal(max(1, len(assessments))) * HUNDRED


def loss_score(total_unrealized_pl: Decimal) -> Decimal:
    if total_unrealized_pl >= ZERO:
        return ZERO
    return min(SCORE_CAP, abs(total_unrealized_pl) / LOSS_SCORE_DIVISOR)


def weighted_risk_score(
        concentration: Decimal,
        volatility: Decimal,
        loss: Decimal,
) -> Decimal:
    """Unrounded weighted sum of the three component scores."""
    return (
        concentration * CONCENTRATION_WEIGHT
        + volatility * VOLATILITY_WEIGHT
        + loss * LOSS_WEIGHT
    )


def composite_risk_score(
        concentration: Decimal,
        volatility: Decimal,
        loss: Decimal,
) -> int:
    """Weighted sum rounded half-up to an integer in [0, 100]."""
    weighted = weighted_risk_score(concentration, volatility, loss)
    score = int(weighted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(int(SCORE_CAP), score))


def classify_risk_level(score: Decimal | int) -> RiskLevel:
    """
    Level for a weighted score, strictly above each boundary.

    Pass the unrounded weighted score: 40.4 is medium even though it
    reports as 40.
    """
    if score > HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if score > MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


# =============================================================================
# RECOMMENDATIONS
# =============================================================================

def _format_percentage(value: Decimal) -> str:
    return str(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def generate_recommendations(
        risk_level: RiskLevel,
        concentration_risks: list[ConcentrationRisk],
        volatility_assessments: list[VolatilityAssessment],
) -> list[Recommendation]:
    """
    Deterministic recommendation list, in this order:

    1. Diversification (high) when the level is high
    2. One concentration recommendation (medium) per concentrated currency
    3. One volatility warning (high) listing every very_high currency
    4. Otherwise a single "well-balanced" status (low)
    """
    recommendations: list[Recommendation] = []

    if risk_level == RiskLevel.HIGH:
        recommendations.append(Recommendation(
            category=RecommendationCategory.DIVERSIFICATION,
            priority=RecommendationPriority.HIGH,
            message=DIVERSIFICATION_MESSAGE,
        ))

    for risk in concentration_risks:
        recommendations.append(Recommendation(
            category=RecommendationCategory.CONCENTRATION,
            priority=RecommendationPriority.MEDIUM,
            message=(
                f"{_format_percentage(risk.percentage)}% of your portfolio is in "
                f"{risk.currency}. Consider reducing concentration."
            ),
            currencies=(risk.currency,),
        ))

    very_high = [a.currency for a in volatility_assessments if a.volatility == VolatilityClass.VERY_HIGH]
    if very_high:
        recommendations.append(Recommendation(
            category=RecommendationCategory.VOLATILITY,
            priority=RecommendationPriority.HIGH,
            message=(
                f"You have exposure to high-volatility currencies: "
                f"{', '.join(very_high)}. Monitor closely."
            ),
            currencies=tuple(very_high),
        ))

    if not recommendations:
        recommendations.append(Recommendation(
            category=RecommendationCategory.STATUS,
            priority=RecommendationPriority.LOW,
            message=BALANCED_MESSAGE,
        ))

    return recommendations
