# currency_intel/schemas/revaluation.py
"""
Pydantic schemas for the Currency Intelligence API.

Response formats for:
- Net worth revaluation (FX impact vs. non-FX change between snapshots)
- Unrealized FX P&L per foreign-currency account
- Currency exposure by bucket
- Composite currency risk assessment

Design decisions:
- All monetary values, rates and percentages are serialized as STRINGS to
  preserve Decimal precision
- Percentages are in percent form ("25.5" = 25.5%), unlike rates
- Null is returned when a figure cannot be computed (e.g. P&L percentage on
  a zero acquisition value)
- Reports that do per-account lookups carry failures + failure_count so a
  partial result is never mistaken for a complete one
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from currency_intel.services.forex.types import VolatilityClass
from currency_intel.services.revaluation.types import (
    RecommendationCategory,
    RecommendationPriority,
    RiskLevel,
)


# =============================================================================
# SHARED
# =============================================================================

class AccountFailureResponse(BaseModel):
    """An account (or currency) skipped because a rate lookup failed."""

    model_config = ConfigDict(from_attributes=True)

    account_id: int | None = Field(None, description="Account ID (null for currency-level failures)")
    account_name: str | None = Field(None, description="Account name")
    currency: str = Field(..., description="Currency that could not be valued")
    reason: str = Field(..., description="Why the lookup failed")


# =============================================================================
# REVALUATION
# =============================================================================

class CurrencyImpactResponse(BaseModel):
    """FX impact of one currency between two consecutive snapshots."""

    model_config = ConfigDict(from_attributes=True)

    currency: str
    previous_rate: str = Field(..., description="Rate at the earlier snapshot")
    current_rate: str = Field(..., description="Rate at the later snapshot")
    previous_value: str = Field(..., description="Base-currency value at the earlier snapshot")
    current_value: str = Field(..., description="Base-currency value at the later snapshot")
    balance_change: str = Field(..., description="Change in raw balance (account currency)")
    fx_impact: str = Field(..., description="Change explained by exchange-rate movement")
    accounts_matched: int = Field(..., description="Accounts present in both snapshots")


class SnapshotRevaluationResponse(BaseModel):
    """Decomposition of one snapshot pair."""

    model_config = ConfigDict(from_attributes=True)

    start_date: datetime
    end_date: datetime
    previous_net_worth: str
    current_net_worth: str
    net_worth_change: str
    fx_impact: str
    non_fx_change: str = Field(..., description="net_worth_change - fx_impact")
    currency_impacts: list[CurrencyImpactResponse] = Field(default_factory=list)


class RevaluationSummaryResponse(BaseModel):
    """Totals over the whole window."""

    model_config = ConfigDict(from_attributes=True)

    initial_net_worth: str
    final_net_worth: str
    total_change: str
    total_fx_impact: str
    non_fx_change: str
    fx_attributed_percentage: str = Field(
        ...,
        description="Share of the change explained by FX, in percent (0 when nothing changed)"
    )
    snapshots_analyzed: int


class RevaluationReportResponse(BaseModel):
    """
    Response for GET /users/{id}/currency/revaluation.

    An empty window is not an error: has_data is false, message explains
    why and summary is null.
    """

    user_id: int
    base_currency: str
    start_date: datetime
    end_date: datetime
    has_data: bool
    message: str | None = None
    snapshots_analyzed: int = 0
    summary: RevaluationSummaryResponse | None = None
    revaluations: list[SnapshotRevaluationResponse] = Field(default_factory=list)


# =============================================================================
# UNREALIZED P&L
# =============================================================================

class AccountPLResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: int
    account_name: str
    currency: str
    balance: str
    acquisition_rate: str = Field(..., description="Estimated rate when the position was opened")
    current_rate: str
    acquisition_value: str
    current_value: str
    unrealized_pl: str
    unrealized_pl_percentage: str | None = Field(
        None,
        description="Null when the acquisition value is zero"
    )


class UnrealizedPLResponse(BaseModel):
    """Response for GET /users/{id}/currency/unrealized-pl."""

    user_id: int
    base_currency: str
    accounts: list[AccountPLResponse] = Field(default_factory=list)
    total_unrealized_pl: str
    failures: list[AccountFailureResponse] = Field(default_factory=list)
    failure_count: int = 0
    generated_at: datetime


# =============================================================================
# EXPOSURE
# =============================================================================

class ExposureAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: int
    name: str
    balance: str


class CurrencyExposureItem(BaseModel):
    """One currency bucket."""

    currency: str
    total_balance: str = Field(..., description="Sum of balances in the bucket currency")
    value_in_base: str
    percentage: str = Field(..., description="Share of total_value_in_base, in percent")
    accounts: list[ExposureAccountResponse] = Field(default_factory=list)


class CurrencyExposureResponse(BaseModel):
    """Response for GET /users/{id}/currency/exposure (largest bucket first)."""

    user_id: int
    base_currency: str
    exposures: list[CurrencyExposureItem] = Field(default_factory=list)
    total_value_in_base: str
    currencies_count: int
    failures: list[AccountFailureResponse] = Field(default_factory=list)
    failure_count: int = 0
    generated_at: datetime


# =============================================================================
# RISK
# =============================================================================

class ConcentrationRiskResponse(BaseModel):
    currency: str
    percentage: str
    value_in_base: str


class VolatilityAssessmentResponse(BaseModel):
    currency: str
    exposure_percentage: str
    volatility: VolatilityClass
    annualized_volatility: str
    recommendation: str


class RecommendationResponse(BaseModel):
    category: RecommendationCategory
    priority: RecommendationPriority
    message: str
    currencies: list[str] = Field(default_factory=list)


class RiskAssessmentResponse(BaseModel):
    """
    Response for GET /users/{id}/currency/risk.

    risk_score is an integer 0-100. The component scores are returned for
    transparency; the composite is their weighted sum.
    """

    user_id: int
    base_currency: str
    risk_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    concentration_score: str
    volatility_score: str
    loss_score: str
    total_unrealized_pl: str
    concentration_risks: list[ConcentrationRiskResponse] = Field(default_factory=list)
    volatility_assessments: list[VolatilityAssessmentResponse] = Field(default_factory=list)
    recommendations: list[RecommendationResponse] = Field(default_factory=list)
    failures: list[AccountFailureResponse] = Field(default_factory=list)
    failure_count: int = 0
    generated_at: datetime
