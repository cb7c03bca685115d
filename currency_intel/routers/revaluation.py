# currency_intel/routers/revaluation.py
"""
Currency intelligence endpoints.

- GET /users/{id}/currency/revaluation - FX vs. non-FX net worth change
- GET /users/{id}/currency/unrealized-pl - Unrealized FX P&L per account
- GET /users/{id}/currency/exposure - Value held per currency
- GET /users/{id}/currency/risk - Composite currency risk score

Optional parameters:
- base_currency: ISO 4217 code (default: DEFAULT_BASE_CURRENCY setting)
- start_date / end_date: Revaluation window (default: last 30 days)

Unknown users get 404, malformed currency codes 422 and inverted date
ranges 400 (all via the global handlers in main.py).
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from currency_intel.database import get_db
from currency_intel.dependencies import get_existing_user_id, get_revaluation_service
from currency_intel.middleware.rate_limit import limiter, RATE_LIMIT_ANALYTICS
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
from currency_intel.services.revaluation import (
    AccountFailure,
    AccountPL,
    CurrencyExposure,
    CurrencyImpact,
    PeriodReport,
    RevaluationService,
    RevaluationSummary,
    SnapshotRevaluation,
)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/users/{user_id}/currency",
    tags=["Currency Intelligence"],
)

BASE_CURRENCY_DESCRIPTION = "ISO 4217 base currency (default: configured base currency)"


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _decimal_to_str(value: Decimal | None) -> str | None:
    """Convert Decimal to a plain (non-exponent) string, trailing zeros removed."""
    if value is None:
        return None
    if isinstance(value, int):
        value = Decimal(value)
    return format(value.normalize(), "f")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_failure(failure: AccountFailure) -> AccountFailureResponse:
    return AccountFailureResponse(
        account_id=failure.account_id,
        account_name=failure.account_name,
        currency=failure.currency,
        reason=failure.reason,
    )


def _map_currency_impact(impact: CurrencyImpact) -> CurrencyImpactResponse:
    return CurrencyImpactResponse(
        currency=impact.currency,
        previous_rate=_decimal_to_str(impact.previous_rate),
        current_rate=_decimal_to_str(impact.current_rate),
        previous_value=_decimal_to_str(impact.previous_value),
        current_value=_decimal_to_str(impact.current_value),
        balance_change=_decimal_to_str(impact.balance_change),
        fx_impact=_decimal_to_str(impact.fx_impact),
        accounts_matched=impact.accounts_matched,
    )


def _map_revaluation(revaluation: SnapshotRevaluation) -> SnapshotRevaluationResponse:
    return SnapshotRevaluationResponse(
        start_date=revaluation.start_date,
        end_date=revaluation.end_date,
        previous_net_worth=_decimal_to_str(revaluation.previous_net_worth),
        current_net_worth=_decimal_to_str(revaluation.current_net_worth),
        net_worth_change=_decimal_to_str(revaluation.net_worth_change),
        fx_impact=_decimal_to_str(revaluation.fx_impact),
        non_fx_change=_decimal_to_str(revaluation.non_fx_change),
        currency_impacts=[_map_currency_impact(i) for i in revaluation.currency_impacts],
    )


def _map_summary(summary: RevaluationSummary | None) -> RevaluationSummaryResponse | None:
    if summary is None:
        return None
    return RevaluationSummaryResponse(
        initial_net_worth=_decimal_to_str(summary.initial_net_worth),
        final_net_worth=_decimal_to_str(summary.final_net_worth),
        total_change=_decimal_to_str(summary.total_change),
        total_fx_impact=_decimal_to_str(summary.total_fx_impact),
        non_fx_change=_decimal_to_str(summary.non_fx_change),
        fx_attributed_percentage=_decimal_to_str(summary.fx_attributed_percentage),
        snapshots_analyzed=summary.snapshots_analyzed,
    )


def _map_period_report(report: PeriodReport) -> RevaluationReportResponse:
    return RevaluationReportResponse(
        user_id=report.user_id,
        base_currency=report.base_currency,
        start_date=report.start_date,
        end_date=report.end_date,
        has_data=report.has_data,
        message=report.message,
        snapshots_analyzed=report.snapshots_analyzed,
        summary=_map_summary(report.summary),
        revaluations=[_map_revaluation(r) for r in report.revaluations],
    )


def _map_account_pl(account: AccountPL) -> AccountPLResponse:
    return AccountPLResponse(
        account_id=account.account_id,
        account_name=account.account_name,
        currency=account.currency,
        balance=_decimal_to_str(account.balance),
        acquisition_rate=_decimal_to_str(account.acquisition_rate),
        current_rate=_decimal_to_str(account.current_rate),
        acquisition_value=_decimal_to_str(account.acquisition_value),
        current_value=_decimal_to_str(account.current_value),
        unrealized_pl=_decimal_to_str(account.unrealized_pl),
        unrealized_pl_percentage=_decimal_to_str(account.unrealized_pl_percentage),
    )


def _map_exposure(exposure: CurrencyExposure) -> CurrencyExposureItem:
    return CurrencyExposureItem(
        currency=exposure.currency,
        total_balance=_decimal_to_str(exposure.total_balance),
        value_in_base=_decimal_to_str(exposure.value_in_base),
        percentage=_decimal_to_str(exposure.percentage),
        accounts=[
            ExposureAccountResponse(
                account_id=a.account_id,
                name=a.name,
                balance=_decimal_to_str(a.balance),
            )
            for a in exposure.accounts
        ],
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/revaluation",
    response_model=RevaluationReportResponse,
    summary="Decompose net worth change into FX and non-FX parts",
    response_description="Per-pair revaluations and a window summary",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_revaluation_report(
        request: Request,  # Required for rate limiting
        user_id: int = Depends(get_existing_user_id),
        base_currency: str | None = Query(default=None, description=BASE_CURRENCY_DESCRIPTION),
        start_date: date | None = Query(
            default=None,
            description="Start of the window (default: 30 days before end_date)"
        ),
        end_date: date | None = Query(
            default=None,
            description="End of the window, inclusive (default: now)"
        ),
        db: Session = Depends(get_db),
        service: RevaluationService = Depends(get_revaluation_service),
) -> RevaluationReportResponse:
    """
    Walk consecutive snapshots in the window and split each change into
    the part caused by exchange-rate movement and everything else.

    A window without snapshots returns `has_data: false` with a message,
    not an error.
    """
    report = service.generate_revaluation_report(
        db,
        user_id,
        base_currency=base_currency,
        start_date=start_date,
        end_date=end_date,
    )
    return _map_period_report(report)


@router.get(
    "/unrealized-pl",
    response_model=UnrealizedPLResponse,
    summary="Unrealized FX P&L of foreign-currency accounts",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_unrealized_pl(
        request: Request,  # Required for rate limiting
        user_id: int = Depends(get_existing_user_id),
        base_currency: str | None = Query(default=None, description=BASE_CURRENCY_DESCRIPTION),
        db: Session = Depends(get_db),
        service: RevaluationService = Depends(get_revaluation_service),
) -> UnrealizedPLResponse:
    """
    Unrealized P&L for every active account not held in the base currency.

    Accounts whose rate cannot be fetched are listed under `failures`;
    the rest of the report is still returned.
    """
    report = service.calculate_current_unrealized_pl(db, user_id, base_currency=base_currency)

    return UnrealizedPLResponse(
        user_id=report.user_id,
        base_currency=report.base_currency,
        accounts=[_map_account_pl(a) for a in report.accounts],
        total_unrealized_pl=_decimal_to_str(report.total_unrealized_pl),
        failures=[_map_failure(f) for f in report.failures],
        failure_count=report.failure_count,
        generated_at=_now(),
    )


@router.get(
    "/exposure",
    response_model=CurrencyExposureResponse,
    summary="Value held per currency",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_currency_exposure(
        request: Request,  # Required for rate limiting
        user_id: int = Depends(get_existing_user_id),
        base_currency: str | None = Query(default=None, description=BASE_CURRENCY_DESCRIPTION),
        db: Session = Depends(get_db),
        service: RevaluationService = Depends(get_revaluation_service),
) -> CurrencyExposureResponse:
    """Currency buckets sorted by base-currency value, largest first."""
    report = service.get_currency_exposure(db, user_id, base_currency=base_currency)

    return CurrencyExposureResponse(
        user_id=report.user_id,
        base_currency=report.base_currency,
        exposures=[_map_exposure(e) for e in report.exposures],
        total_value_in_base=_decimal_to_str(report.total_value_in_base),
        currencies_count=report.currencies_count,
        failures=[_map_failure(f) for f in report.failures],
        failure_count=report.failure_count,
        generated_at=_now(),
    )


@router.get(
    "/risk",
    response_model=RiskAssessmentResponse,
    summary="Composite currency risk score",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_risk_assessment(
        request: Request,  # Required for rate limiting
        user_id: int = Depends(get_existing_user_id),
        base_currency: str | None = Query(default=None, description=BASE_CURRENCY_DESCRIPTION),
        db: Session = Depends(get_db),
        service: RevaluationService = Depends(get_revaluation_service),
) -> RiskAssessmentResponse:
    """
    Score currency risk 0-100 from concentration, volatility and
    unrealized losses.

    - **low**: score <= 40
    - **medium**: 41-70
    - **high**: above 70
    """
    assessment = service.generate_risk_assessment(db, user_id, base_currency=base_currency)

    return RiskAssessmentResponse(
        user_id=assessment.user_id,
        base_currency=assessment.base_currency,
        risk_score=assessment.risk_score,
        risk_level=assessment.risk_level,
        concentration_score=_decimal_to_str(assessment.concentration_score),
        volatility_score=_decimal_to_str(assessment.volatility_score),
        loss_score=_decimal_to_str(assessment.loss_score),
        total_unrealized_pl=_decimal_to_str(assessment.total_unrealized_pl),
        concentration_risks=[
            ConcentrationRiskResponse(
                currency=r.currency,
                percentage=_decimal_to_str(r.percentage),
                value_in_base=_decimal_to_str(r.value_in_base),
            )
            for r in assessment.concentration_risks
        ],
        volatility_assessments=[
            VolatilityAssessmentResponse(
                currency=v.currency,
                exposure_percentage=_decimal_to_str(v.exposure_percentage),
                volatility=v.volatility,
                annualized_volatility=_decimal_to_str(v.annualized_volatility),
                recommendation=v.recommendation,
            )
            for v in assessment.volatility_assessments
        ],
        recommendations=[
            RecommendationResponse(
                category=r.category,
                priority=r.priority,
                message=r.message,
                currencies=list(r.currencies),
            )
            for r in assessment.recommendations
        ],
        failures=[_map_failure(f) for f in assessment.failures],
        failure_count=assessment.failure_count,
        generated_at=_now(),
    )
