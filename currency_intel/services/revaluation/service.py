# currency_intel/services/revaluation/service.py
"""
Revaluation Service - orchestrator for multi-currency intelligence.

Entry points:
- generate_revaluation_report(): FX vs non-FX decomposition over a window
- calculate_current_unrealized_pl(): Unrealized P&L on foreign accounts
- get_currency_exposure(): Concentration by currency, largest first
- generate_risk_assessment(): Weighted risk score and recommendations

Design Principles:
- Dependency Injection: rate service and stores injected via constructor
- No HTTP Knowledge: raises domain exceptions, not HTTPException
- Partial results: a failed per-account lookup is recorded as an
  AccountFailure and the account is skipped; the call still succeeds
- Lookups run sequentially, one account at a time

Usage:
    from currency_intel.services.revaluation import RevaluationService

    service = RevaluationService(rate_service=forex_service)
    report = service.generate_revaluation_report(db, user_id=1)
    risk = service.generate_risk_assessment(db, user_id=1, base_currency="EUR")
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from currency_intel.services.constants import NO_SNAPSHOTS_MESSAGE, ZERO
from currency_intel.services.currency import normalize_currency
from currency_intel.services.exceptions import InvalidDateRangeError, ServiceError
from currency_intel.services.forex.types import UnrealizedPLRequest
from currency_intel.services.revaluation.calculators import (
    AcquisitionRateEstimator,
    ExposureAnalyzer,
    ReportAggregator,
    SnapshotRevaluator,
)
from currency_intel.services.revaluation.risk import (
    classify_risk_level,
    composite_risk_score,
    concentration_score,
    find_concentration_risks,
    generate_recommendations,
    loss_score,
    volatility_score,
    weighted_risk_score,
)
from currency_intel.services.revaluation.types import (
    AccountFailure,
    AccountHolding,
    AccountPL,
    ExposureReport,
    PeriodReport,
    PLReport,
    RiskAssessment,
    VolatilityAssessment,
)
from currency_intel.utils.date_utils import resolve_window

if TYPE_CHECKING:
    from decimal import Decimal
    from currency_intel.services.protocols import (
        AccountStoreProtocol,
        RateServiceProtocol,
        SnapshotStoreProtocol,
    )

logger = logging.getLogger(__name__)

# Failures that only cost one account its place in a report. Anything else
# is a bug and propagates.
RECOVERABLE_ERRORS = (ServiceError, ArithmeticError)


class RevaluationService:
    """
    Main service for currency revaluation and risk analysis.

    Attributes:
        _rate_service: Real-time rates, conversion, volatility, P&L maths
        _snapshot_store: Snapshot lookup
        _account_store: Live account lookup
    """

    def __init__(
            self,
            rate_service: RateServiceProtocol,
            snapshot_store: SnapshotStoreProtocol | None = None,
            account_store: AccountStoreProtocol | None = None,
            default_base_currency: str | None = None,
            default_window_days: int | None = None,
    ) -> None:
        if snapshot_store is None or account_store is None:
            from currency_intel.services.stores import SqlAccountStore, SqlSnapshotStore
            snapshot_store = snapshot_store or SqlSnapshotStore()
            account_store = account_store or SqlAccountStore()

        if default_base_currency is None or default_window_days is None:
            from currency_intel.config import settings
            default_base_currency = default_base_currency or settings.default_base_currency
            default_window_days = default_window_days or settings.revaluation_default_window_days

        self._rate_service = rate_service
        self._snapshot_store = snapshot_store
        self._account_store = account_store
        self._default_base_currency = normalize_currency(default_base_currency)
        self._default_window_days = default_window_days

        self._aggregator = ReportAggregator(SnapshotRevaluator())
        self._acquisition_estimator = AcquisitionRateEstimator()
        self._exposure_analyzer = ExposureAnalyzer()

        logger.info(
            f"RevaluationService initialized (base={self._default_base_currency}, "
            f"window={self._default_window_days}d)"
        )

    # =========================================================================
    # REVALUATION REPORT
    # =========================================================================

    def generate_revaluation_report(
            self,
            db: Session,
            user_id: int,
            base_currency: str | None = None,
            start_date: datetime | date | None = None,
            end_date: datetime | date | None = None,
            now: datetime | None = None,
    ) -> PeriodReport:
        """
        Decompose net worth change over [start_date, end_date] into FX
        impact and non-FX change.

        end_date defaults to now; start_date defaults to the configured
        window (30 days) before end_date. An empty window is not an error:
        the report comes back with has_data False and a message.

        Raises:
            InvalidCurrencyError: Malformed base_currency
            InvalidDateRangeError: start_date after end_date
            SnapshotValidationError: A stored snapshot is malformed
        """
        base = self._resolve_base_currency(base_currency)
        start, end = resolve_window(start_date, end_date, self._default_window_days, now=now)

        if start > end:
            raise InvalidDateRangeError(start, end)

        snapshots = self._snapshot_store.find_snapshots(db, user_id, start, end)

        if not snapshots:
            logger.info(f"No snapshots for user {user_id} between {start} and {end}")
            return PeriodReport(
                user_id=user_id,
                base_currency=base,
                start_date=start,
                end_date=end,
                message=NO_SNAPSHOTS_MESSAGE,
            )

        revaluations, summary = self._aggregator.aggregate(snapshots, base)

        logger.info(
            f"Revaluation report for user {user_id}: {summary.snapshots_analyzed} snapshots, "
            f"change={summary.total_change}, fx_impact={summary.total_fx_impact}"
        )

        return PeriodReport(
            user_id=user_id,
            base_currency=base,
            start_date=start,
            end_date=end,
            revaluations=revaluations,
            summary=summary,
        )

    # =========================================================================
    # UNREALIZED P&L
    # =========================================================================

    def calculate_current_unrealized_pl(
            self,
            db: Session,
            user_id: int,
            base_currency: str | None = None,
    ) -> PLReport:
        """
        Unrealized P&L for every active account not held in base_currency.

        The acquisition rate is approximated from balance / opening_balance
        (see AcquisitionRateEstimator).
        """
        base = self._resolve_base_currency(base_currency)
        holdings = self._account_store.find_active_accounts(db, user_id, exclude_currency=base)

        report = PLReport(user_id=user_id, base_currency=base)

        for holding in holdings:
            if holding.currency == base:
                continue
            try:
                account_pl = self._account_pl(holding, base)
            except RECOVERABLE_ERRORS as e:
                report.failures.append(self._record_failure(holding, e, "unrealized P&L"))
                continue

            report.accounts.append(account_pl)

        report.total_unrealized_pl = sum((a.unrealized_pl for a in report.accounts), ZERO)

        logger.info(
            f"Unrealized P&L for user {user_id}: {len(report.accounts)} accounts, "
            f"total={report.total_unrealized_pl} {base}, failures={report.failure_count}"
        )
        return report

    def _account_pl(self, holding: AccountHolding, base: str) -> AccountPL:
        quote = self._rate_service.get_real_time_rate(holding.currency, base)
        acquisition_rate = self._acquisition_estimator.estimate(holding, quote.rate)

        result = self._rate_service.calculate_unrealized_pl(
            UnrealizedPLRequest(
                currency=holding.currency,
                amount=holding.balance,
                acquisition_rate=acquisition_rate,
                base_currency=base,
                current_rate=quote.rate,
            )
        )

        return AccountPL(
            account_id=holding.account_id,
            account_name=holding.name,
            currency=result.currency,
            balance=holding.balance,
            acquisition_rate=result.acquisition_rate,
            current_rate=result.current_rate,
            acquisition_value=result.acquisition_value,
            current_value=result.current_value,
            unrealized_pl=result.unrealized_pl,
            unrealized_pl_percentage=result.unrealized_pl_percentage,
        )

    # =========================================================================
    # EXPOSURE
    # =========================================================================

    def get_currency_exposure(
            self,
            db: Session,
            user_id: int,
            base_currency: str | None = None,
    ) -> ExposureReport:
        """
        Value held in each currency, converted to base_currency.

        Only active accounts included in net worth are counted.
        """
        base = self._resolve_base_currency(base_currency)
        holdings = self._account_store.find_active_accounts(db, user_id, net_worth_only=True)

        valued: list[tuple[AccountHolding, Decimal]] = []
        failures: list[AccountFailure] = []

        for holding in holdings:
            if holding.currency == base:
                valued.append((holding, holding.balance))
                continue
            try:
                conversion = self._rate_service.convert_real_time(holding.balance, holding.currency, base)
            except RECOVERABLE_ERRORS as e:
                failures.append(self._record_failure(holding, e, "exposure conversion"))
                continue
            valued.append((holding, conversion.converted_amount))

        exposures, total = self._exposure_analyzer.analyze(valued)

        logger.info(
            f"Currency exposure for user {user_id}: {len(exposures)} currencies, "
            f"total={total} {base}, failures={len(failures)}"
        )

        return ExposureReport(
            user_id=user_id,
            base_currency=base,
            exposures=exposures,
            total_value_in_base=total,
            failures=failures,
        )

    # =========================================================================
    # RISK ASSESSMENT
    # =========================================================================

    def generate_risk_assessment(
            self,
            db: Session,
            user_id: int,
            base_currency: str | None = None,
    ) -> RiskAssessment:
        """
        Combine exposure, unrealized P&L and volatility into a 0-100 score.

        A currency whose volatility cannot be determined is left out of the
        volatility score and reported as a failure.
        """
        base = self._resolve_base_currency(base_currency)

        exposure = self.get_currency_exposure(db, user_id, base)
        pl = self.calculate_current_unrealized_pl(db, user_id, base)

        concentration_risks = find_concentration_risks(exposure.exposures, base)

        assessments: list[VolatilityAssessment] = []
        volatility_failures: list[AccountFailure] = []

        for currency_exposure in exposure.exposures:
            if currency_exposure.currency == base:
                continue
            try:
                volatility = self._rate_service.get_currency_volatility(currency_exposure.currency, base)
            except RECOVERABLE_ERRORS as e:
                logger.warning(
                    f"Volatility lookup failed for {currency_exposure.currency}/{base}: {e}"
                )
                volatility_failures.append(AccountFailure(
                    account_id=None,
                    account_name=None,
                    currency=currency_exposure.currency,
                    reason=f"volatility lookup failed: {e}",
                ))
                continue

            assessments.append(VolatilityAssessment(
                currency=currency_exposure.currency,
                exposure_percentage=currency_exposure.percentage,
                volatility=volatility.volatility_score,
                annualized_volatility=volatility.annualized_volatility,
                recommendation=volatility.recommendation,
            ))

        concentration = concentration_score(concentration_risks)
        volatility_component = volatility_score(assessments)
        loss = loss_score(pl.total_unrealized_pl)
        weighted = weighted_risk_score(concentration, volatility_component, loss)
        score = composite_risk_score(concentration, volatility_component, loss)
        level = classify_risk_level(weighted)

        logger.info(
            f"Risk assessment for user {user_id}: score={score} ({level.value}), "
            f"concentration={concentration}, volatility={volatility_component}, loss={loss}"
        )

        return RiskAssessment(
            user_id=user_id,
            base_currency=base,
            risk_score=score,
            risk_level=level,
            concentration_score=concentration,
            volatility_score=volatility_component,
            loss_score=loss,
            concentration_risks=concentration_risks,
            volatility_assessments=assessments,
            total_unrealized_pl=pl.total_unrealized_pl,
            recommendations=generate_recommendations(level, concentration_risks, assessments),
            failures=exposure.failures + pl.failures + volatility_failures,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _resolve_base_currency(self, base_currency: str | None) -> str:
        if base_currency is None:
            return self._default_base_currency
        return normalize_currency(base_currency, field="base_currency")

    @staticmethod
    def _record_failure(holding: AccountHolding, error: Exception, operation: str) -> AccountFailure:
        logger.warning(
            f"Skipping account {holding.account_id} ({holding.currency}) in {operation}: {error}",
            extra={"account_id": holding.account_id, "currency": holding.currency},
        )
        return AccountFailure(
            account_id=holding.account_id,
            account_name=holding.name,
            currency=holding.currency,
            reason=str(error),
        )
