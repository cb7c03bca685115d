# currency_intel/services/revaluation/__init__.py
"""
Revaluation Service Package.

Explains why a user's net worth moved (FX vs everything else) and how
exposed they are to currency risk.

Usage:
    from currency_intel.services.revaluation import RevaluationService

    service = RevaluationService(rate_service=forex_service)
    report = service.generate_revaluation_report(db, user_id=1)

Architecture:
    revaluation/
    ├── __init__.py       # This file - package exports
    ├── types.py          # Snapshots, results, enums
    ├── calculators.py    # Revaluator, aggregator, P&L estimator, exposure
    ├── risk.py           # Pure scoring and recommendations
    └── service.py        # RevaluationService (orchestrator)

Data Flow:
    Snapshots → ReportAggregator → SnapshotRevaluator (pairwise) → PeriodReport
    Accounts + ForexService → ExposureAnalyzer → ExposureReport
    Accounts + ForexService → AcquisitionRateEstimator → PLReport
    Exposure + P&L + Volatility → risk.py → RiskAssessment
"""

from currency_intel.services.revaluation.calculators import (
    AcquisitionRateEstimator,
    ExposureAnalyzer,
    ReportAggregator,
    SnapshotRevaluator,
    fx_attributed_percentage,
)
from currency_intel.services.revaluation.service import RevaluationService
from currency_intel.services.revaluation.types import (
    AccountFailure,
    AccountHolding,
    AccountPL,
    ConcentrationRisk,
    CurrencyExposure,
    CurrencyImpact,
    ExposureAccount,
    ExposureReport,
    PeriodReport,
    PLReport,
    Recommendation,
    RecommendationCategory,
    RecommendationPriority,
    RevaluationSummary,
    RiskAssessment,
    RiskLevel,
    Snapshot,
    SnapshotEntry,
    SnapshotRevaluation,
    VolatilityAssessment,
)

__all__ = [
    "RevaluationService",
    "SnapshotRevaluator",
    "ReportAggregator",
    "AcquisitionRateEstimator",
    "ExposureAnalyzer",
    "fx_attributed_percentage",
    "AccountFailure",
    "AccountHolding",
    "AccountPL",
    "ConcentrationRisk",
    "CurrencyExposure",
    "CurrencyImpact",
    "ExposureAccount",
    "ExposureReport",
    "PeriodReport",
    "PLReport",
    "Recommendation",
    "RecommendationCategory",
    "RecommendationPriority",
    "RevaluationSummary",
    "RiskAssessment",
    "RiskLevel",
    "Snapshot",
    "SnapshotEntry",
    "SnapshotRevaluation",
    "VolatilityAssessment",
]
