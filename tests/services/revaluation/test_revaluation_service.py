# tests/services/revaluation/test_revaluation_service.py
"""
Integration tests for RevaluationService.

These run the real SQLAlchemy stores against in-memory SQLite and a real
ForexService over the fake quote provider, so only the network is faked.

Test Coverage:
- Revaluation report: windows, empty windows, validation
- Unrealized P&L: approximation, exclusions, partial failures
- Exposure: filtering, percentages, partial failures
- Risk assessment: scoring end to end, volatility failures
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from currency_intel.services.constants import NO_SNAPSHOTS_MESSAGE
from currency_intel.services.exceptions import (
    InvalidCurrencyError,
    InvalidDateRangeError,
    ProviderUnavailableError,
)
from currency_intel.services.revaluation import RevaluationService
from currency_intel.services.revaluation.types import (
    RecommendationCategory,
    RiskLevel,
)
from currency_intel.services.forex.types import VolatilityClass
from currency_intel.services.stores import SqlAccountStore, SqlSnapshotStore
from tests.conftest import (
    MEDIUM_HISTORY,
    STABLE_HISTORY,
    WILD_HISTORY,
    create_account,
    create_snapshot,
    create_user,
    utc,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def service(forex_service) -> RevaluationService:
    return RevaluationService(
        rate_service=forex_service,
        snapshot_store=SqlSnapshotStore(),
        account_store=SqlAccountStore(),
        default_base_currency="USD",
        default_window_days=30,
    )


@pytest.fixture
def user(db):
    return create_user(db)


def eur_entry(balance: str, rate: str) -> dict:
    return {
        "account_id": 1,
        "account_name": "Euro savings",
        "currency": "EUR",
        "balance": balance,
        "exchange_rate": rate,
        "balance_in_base_currency": str(Decimal(balance) * Decimal(rate)),
    }


# =============================================================================
# REVALUATION REPORT
# =============================================================================

class TestGenerateRevaluationReport:

    def test_report_over_window(self, db, service, user):
        create_snapshot(db, user, utc(2024, 1, 1), "1100", [eur_entry("1000", "1.10")])
        create_snapshot(db, user, utc(2024, 1, 15), "1200", [eur_entry("1000", "1.20")])
        create_snapshot(db, user, utc(2024, 1, 31), "1380", [eur_entry("1150", "1.20")])

        report = service.generate_revaluation_report(
            db, user.id, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)
        )

        assert report.has_data is True
        assert report.message is None
        assert report.snapshots_analyzed == 3
        assert len(report.revaluations) == 2
        assert report.summary.total_change == Decimal("280")
        assert report.summary.total_fx_impact == Decimal("100")
        assert report.summary.non_fx_change == Decimal("180")

    def test_end_date_covers_the_whole_day(self, db, service, user):
        create_snapshot(db, user, utc(2024, 1, 1), "1000", [])
        create_snapshot(db, user, utc(2024, 1, 31, hour=18), "1100", [])

        report = service.generate_revaluation_report(
            db, user.id, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)
        )

        assert report.snapshots_analyzed == 2

    def test_empty_window_is_not_an_error(self, db, service, user):
        report = service.generate_revaluation_report(
            db, user.id, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)
        )

        assert report.has_data is False
        assert report.message == NO_SNAPSHOTS_MESSAGE
        assert report.summary is None
        assert report.revaluations == []
        assert report.snapshots_analyzed == 0

    def test_single_snapshot_gives_zero_change(self, db, service, user):
        create_snapshot(db, user, utc(2024, 1, 10), "1000", [])

        report = service.generate_revaluation_report(
            db, user.id, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)
        )

        assert report.has_data is True
        assert report.revaluations == []
        assert report.summary.total_change == Decimal("0")
        assert report.summary.snapshots_analyzed == 1

    def test_default_window_is_thirty_days(self, db, service, user):
        now = utc(2024, 6, 30)
        create_snapshot(db, user, now - timedelta(days=40), "500", [])
        create_snapshot(db, user, now - timedelta(days=20), "1000", [])
        create_snapshot(db, user, now - timedelta(days=5), "1100", [])

        report = service.generate_revaluation_report(db, user.id, now=now)

        assert report.start_date == now - timedelta(days=30)
        assert report.end_date == now
        assert report.snapshots_analyzed == 2
        assert report.summary.initial_net_worth == Decimal("1000")

    def test_other_users_snapshots_are_ignored(self, db, service, user):
        other = create_user(db, email="other@example.com")
        create_snapshot(db, other, utc(2024, 1, 10), "999", [])

        report = service.generate_revaluation_report(
            db, user.id, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)
        )

        assert report.has_data is False

    def test_inverted_range_is_rejected(self, db, service, user):
        with pytest.raises(InvalidDateRangeError):
            service.generate_revaluation_report(
                db, user.id, start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)
            )

    def test_invalid_base_currency_is_rejected(self, db, service, user):
        with pytest.raises(InvalidCurrencyError):
            service.generate_revaluation_report(db, user.id, base_currency="EURO")

    def test_base_currency_is_normalised(self, db, service, user):
        report = service.generate_revaluation_report(db, user.id, base_currency="eur")

        assert report.base_currency == "EUR"

    def test_default_base_currency(self, db, service, user):
        report = service.generate_revaluation_report(db, user.id)

        assert report.base_currency == "USD"


# =============================================================================
# UNREALIZED P&L
# =============================================================================

class TestCalculateCurrentUnrealizedPL:

    def test_pl_for_foreign_accounts(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")
        eur = create_account(db, user, "Euro savings", "EUR", "1100", opening_balance="1000")
        fake_provider.set_rate("EUR", "USD", "1.2")

        report = service.calculate_current_unrealized_pl(db, user.id)

        assert len(report.accounts) == 1
        account = report.accounts[0]
        assert account.account_id == eur.id
        assert account.acquisition_rate == Decimal("1.1")
        assert account.current_rate == Decimal("1.2")
        assert account.acquisition_value == Decimal("1210")
        assert account.current_value == Decimal("1320")
        assert account.unrealized_pl == Decimal("110")
        assert account.unrealized_pl_percentage.quantize(Decimal("0.01")) == Decimal("9.09")
        assert report.total_unrealized_pl == Decimal("110")
        assert report.failure_count == 0

    def test_base_currency_accounts_are_not_queried(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")

        report = service.calculate_current_unrealized_pl(db, user.id)

        assert report.accounts == []
        assert report.total_unrealized_pl == Decimal("0")
        assert fake_provider.spot_calls == []

    def test_lower_case_base_currency_rows_are_excluded(self, db, service, user, fake_provider):
        create_account(db, user, "Legacy checking", "usd", "1000", opening_balance="800")

        report = service.calculate_current_unrealized_pl(db, user.id)

        assert report.accounts == []
        assert report.failure_count == 0
        assert fake_provider.spot_calls == []

    def test_no_opening_balance_means_no_pl(self, db, service, user, fake_provider):
        create_account(db, user, "Euro savings", "EUR", "1000", opening_balance="0")
        fake_provider.set_rate("EUR", "USD", "1.2")

        report = service.calculate_current_unrealized_pl(db, user.id)

        assert report.accounts[0].unrealized_pl == Decimal("0")

    def test_inactive_accounts_are_skipped(self, db, service, user, fake_provider):
        create_account(db, user, "Old euro", "EUR", "1000", is_active=False)

        report = service.calculate_current_unrealized_pl(db, user.id)

        assert report.accounts == []
        assert fake_provider.spot_calls == []

    def test_failed_lookup_is_reported_not_raised(self, db, service, user, fake_provider):
        create_account(db, user, "Euro savings", "EUR", "1100", opening_balance="1000")
        gbp = create_account(db, user, "Pounds", "GBP", "500")
        fake_provider.set_rate("EUR", "USD", "1.2")

        report = service.calculate_current_unrealized_pl(db, user.id)

        assert [a.currency for a in report.accounts] == ["EUR"]
        assert report.failure_count == 1
        failure = report.failures[0]
        assert failure.account_id == gbp.id
        assert failure.account_name == "Pounds"
        assert failure.currency == "GBP"
        assert "GBP/USD" in failure.reason
        assert report.total_unrealized_pl == Decimal("110")

    def test_provider_outage_on_one_account(self, db, service, user, fake_provider):
        create_account(db, user, "Euro savings", "EUR", "1000")
        fake_provider.set_error("EUR", "USD", ProviderUnavailableError("fake", "timeout"))

        report = service.calculate_current_unrealized_pl(db, user.id)

        assert report.accounts == []
        assert report.failure_count == 1
        assert "timeout" in report.failures[0].reason


# =============================================================================
# EXPOSURE
# =============================================================================

class TestGetCurrencyExposure:

    def test_exposure_percentages(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")
        create_account(db, user, "Euro savings", "EUR", "500")
        create_account(db, user, "Pension", "GBP", "900", include_in_net_worth=False)
        fake_provider.set_rate("EUR", "USD", "1.2")

        report = service.get_currency_exposure(db, user.id)

        assert report.currencies_count == 2
        assert report.total_value_in_base == Decimal("1600")
        usd, eur = report.exposures
        assert usd.currency == "USD"
        assert usd.percentage == Decimal("62.5")
        assert eur.currency == "EUR"
        assert eur.value_in_base == Decimal("600")
        assert eur.percentage == Decimal("37.5")
        assert eur.accounts[0].name == "Euro savings"

    def test_base_currency_is_not_converted(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")

        report = service.get_currency_exposure(db, user.id)

        assert report.exposures[0].percentage == Decimal("100")
        assert fake_provider.spot_calls == []

    def test_conversion_failure_skips_account(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")
        create_account(db, user, "Pounds", "GBP", "500")

        report = service.get_currency_exposure(db, user.id)

        assert [e.currency for e in report.exposures] == ["USD"]
        assert report.failure_count == 1
        assert report.failures[0].currency == "GBP"

    def test_no_accounts(self, db, service, user):
        report = service.get_currency_exposure(db, user.id)

        assert report.exposures == []
        assert report.total_value_in_base == Decimal("0")

    def test_other_base_currency(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")
        fake_provider.set_rate("USD", "EUR", "0.9")

        report = service.get_currency_exposure(db, user.id, base_currency="EUR")

        assert report.base_currency == "EUR"
        assert report.total_value_in_base == Decimal("900")


# =============================================================================
# RISK ASSESSMENT
# =============================================================================

class TestGenerateRiskAssessment:

    def test_concentrated_volatile_portfolio_is_high_risk(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")
        create_account(db, user, "Lira", "TRY", "2000")
        fake_provider.set_rate("TRY", "USD", "1.2")
        fake_provider.set_history("TRY", "USD", WILD_HISTORY)

        assessment = service.generate_risk_assessment(db, user.id)

        # TRY holds 2400 / 3400 = 70.6% -> concentration capped at 100
        assert assessment.concentration_score == Decimal("100")
        assert assessment.volatility_score == Decimal("100")
        assert assessment.loss_score == Decimal("0")
        assert assessment.risk_score == 80
        assert assessment.risk_level == RiskLevel.HIGH
        assert [c.currency for c in assessment.concentration_risks] == ["TRY"]
        assert assessment.volatility_assessments[0].volatility == VolatilityClass.VERY_HIGH
        assert [r.category for r in assessment.recommendations] == [
            RecommendationCategory.DIVERSIFICATION,
            RecommendationCategory.CONCENTRATION,
            RecommendationCategory.VOLATILITY,
        ]
        assert assessment.failure_count == 0

    def test_forty_percent_medium_volatility_holding(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1500")
        create_account(db, user, "Euro savings", "EUR", "1000")
        fake_provider.set_rate("EUR", "USD", "1")
        fake_provider.set_history("EUR", "USD", MEDIUM_HISTORY)

        assessment = service.generate_risk_assessment(db, user.id)

        # EUR is 1000 / 2500 = 40% -> min(100, 40 x 2) x 0.4 = 32
        assert assessment.concentration_score == Decimal("80")
        assert assessment.volatility_assessments[0].volatility == VolatilityClass.MEDIUM
        assert assessment.volatility_score == Decimal("0")
        assert assessment.loss_score == Decimal("0")
        assert assessment.risk_score == 32
        assert assessment.risk_level == RiskLevel.LOW
        assert [r.category for r in assessment.recommendations] == [RecommendationCategory.CONCENTRATION]

    def test_stable_minor_exposure_is_low_risk(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "9000")
        create_account(db, user, "Euro savings", "EUR", "1000")
        fake_provider.set_rate("EUR", "USD", "1")
        fake_provider.set_history("EUR", "USD", STABLE_HISTORY)

        assessment = service.generate_risk_assessment(db, user.id)

        assert assessment.risk_score == 0
        assert assessment.risk_level == RiskLevel.LOW
        assert assessment.concentration_risks == []
        assert assessment.volatility_assessments[0].volatility == VolatilityClass.LOW
        assert [r.category for r in assessment.recommendations] == [RecommendationCategory.STATUS]

    def test_base_only_portfolio_makes_no_rate_calls(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")

        assessment = service.generate_risk_assessment(db, user.id)

        assert assessment.risk_score == 0
        assert fake_provider.spot_calls == []
        assert fake_provider.history_calls == []

    def test_volatility_failure_skips_currency(self, db, service, user, fake_provider):
        create_account(db, user, "Checking", "USD", "1000")
        create_account(db, user, "Lira", "TRY", "2000")
        fake_provider.set_rate("TRY", "USD", "1.2")

        assessment = service.generate_risk_assessment(db, user.id)

        assert assessment.volatility_assessments == []
        assert assessment.volatility_score == Decimal("0")
        assert assessment.risk_score == 40
        assert assessment.risk_level == RiskLevel.LOW
        assert assessment.failure_count == 1
        failure = assessment.failures[0]
        assert failure.account_id is None
        assert failure.currency == "TRY"
        assert failure.reason.startswith("volatility lookup failed")

    def test_unrealized_loss_raises_score(self, db, service, user, fake_provider):
        # 100000 JPY opened at 200000 -> acquisition rate 0.5, current 0.1
        create_account(db, user, "Checking", "USD", "1000000")
        create_account(db, user, "Yen", "JPY", "100000", opening_balance="200000")
        fake_provider.set_rate("JPY", "USD", "0.1")
        fake_provider.set_history("JPY", "USD", STABLE_HISTORY)

        assessment = service.generate_risk_assessment(db, user.id)

        # P&L = 100000 × (0.1 - 0.5) = -40000 -> loss score 40
        assert assessment.total_unrealized_pl == Decimal("-40000")
        assert assessment.loss_score == Decimal("40")
        assert assessment.risk_score == 8
