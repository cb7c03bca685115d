# currency_intel/schemas/__init__.py
"""Pydantic request/response schemas for the HTTP layer."""

from currency_intel.schemas.errors import ErrorDetail, ValidationErrorDetail, ValidationIssue
from currency_intel.schemas.revaluation import (
    AccountFailureResponse,
    AccountPLResponse,
    ConcentrationRiskResponse,
    CurrencyExposureItem,
    CurrencyExposureResponse,
    CurrencyImpactResponse,
    ExposureAccountResponse,
    RecommendationResponse,
    RevaluationReportResponse,
    RevaluationSummaryResponse,
    RiskAssessmentResponse,
    SnapshotRevaluationResponse,
    UnrealizedPLResponse,
    VolatilityAssessmentResponse,
)

__all__ = [
    "ErrorDetail",
    "ValidationErrorDetail",
    "ValidationIssue",
    "AccountFailureResponse",
    "AccountPLResponse",
    "ConcentrationRiskResponse",
    "CurrencyExposureItem",
    "CurrencyExposureResponse",
    "CurrencyImpactResponse",
    "ExposureAccountResponse",
    "RecommendationResponse",
    "RevaluationReportResponse",
    "RevaluationSummaryResponse",
    "RiskAssessmentResponse",
    "SnapshotRevaluationResponse",
    "UnrealizedPLResponse",
    "VolatilityAssessmentResponse",
]
