# currency_intel/services/revaluation/types.py
"""
Internal data types for the Revaluation Service.

These dataclasses are used by the revaluation calculators and risk scorer.
They are NOT Pydantic schemas - those are defined in
currency_intel/schemas/revaluation.py for API serialization.

Design Principles:
- Snapshots are immutable (frozen=True) once they cross the ingestion boundary
- Use Decimal for ALL financial values (never float)
- Missing optional figures get explicit defaults at ingestion, never deep in
  the calculators (exchange rate 1, base-currency value 0)
- Per-account lookup failures are data (AccountFailure), not log lines

Type Hierarchy:
    SnapshotEntry         - One account inside a snapshot
    Snapshot              - Point-in-time net worth record
    AccountHolding        - Live account used by P&L and exposure
    CurrencyImpact        - Per-currency accumulator for one snapshot pair
    SnapshotRevaluation   - FX / non-FX decomposition of one pair
    RevaluationSummary    - Totals over a whole window
    PeriodReport          - Result of generate_revaluation_report
    AccountFailure        - Account skipped because a lookup failed
    AccountPL / PLReport
    ExposureAccount / CurrencyExposure / ExposureReport
    ConcentrationRisk / VolatilityAssessment / Recommendation / RiskAssessment
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from currency_intel.services.constants import DEFAULT_BASE_VALUE, DEFAULT_EXCHANGE_RATE, ZERO
from currency_intel.services.currency import normalize_currency
from currency_intel.services.exceptions import InvalidCurrencyError, SnapshotValidationError
from currency_intel.services.forex.types import VolatilityClass
from currency_intel.utils.date_utils import ensure_utc


# =============================================================================
# ENUMS
# =============================================================================

class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationCategory(str, Enum):
    DIVERSIFICATION = "diversification"
    CONCENTRATION = "concentration"
    VOLATILITY = "volatility"
    STATUS = "status"


# =============================================================================
# INGESTION HELPERS
# =============================================================================

def _to_decimal(value: Any, default: Decimal) -> Decimal:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _snapshot_currency(value: str | None, snapshot_id: int | None, field_name: str) -> str:
    try:
        return normalize_currency(value, field=field_name)
    except InvalidCurrencyError as e:
        raise SnapshotValidationError(e.message, snapshot_id=snapshot_id, field=field_name) from e


# =============================================================================
# SNAPSHOTS (ingestion boundary)
# =============================================================================

@dataclass(frozen=True)
class SnapshotEntry:
    """
    One account's state inside a snapshot.

    Attributes:
        account_id: Identifies the account across snapshots
        currency: Account currency at snapshot time
        balance: Raw balance in `currency`
        balance_in_base_currency: Balance converted to the snapshot's base
            currency (0 when not recorded)
        exchange_rate: Rate used for that conversion (1 when not recorded,
            meaning "already in base currency")
        account_name: Display name, if recorded
    """

    account_id: int
    currency: str
    balance: Decimal
    balance_in_base_currency: Decimal = DEFAULT_BASE_VALUE
    exchange_rate: Decimal = DEFAULT_EXCHANGE_RATE
    account_name: str | None = None

    @classmethod
    def from_model(cls, row: Any, snapshot_id: int | None = None) -> SnapshotEntry:
        """
        Build an entry from a SnapshotAccountEntry row (or any object with
        the same attributes).

        Raises:
            SnapshotValidationError: Missing account id, blank currency or
                non-positive exchange rate
        """
        account_id = getattr(row, "account_id", None)
        if account_id is None:
            raise SnapshotValidationError("entry without account_id", snapshot_id=snapshot_id, field="account_id")

        currency = _snapshot_currency(getattr(row, "currency", None), snapshot_id, "currency")

        rate = _to_decimal(getattr(row, "exchange_rate", None), DEFAULT_EXCHANGE_RATE)
        if rate.is_nan() or rate <= ZERO:
            raise SnapshotValidationError(
                f"account {account_id} has non-positive exchange rate {rate}",
                snapshot_id=snapshot_id,
                field="exchange_rate",
            )

        return cls(
            account_id=account_id,
            currency=currency,
            balance=_to_decimal(getattr(row, "balance", None), ZERO),
            balance_in_base_currency=_to_decimal(
                getattr(row, "balance_in_base_currency", None), DEFAULT_BASE_VALUE
            ),
            exchange_rate=rate,
            account_name=getattr(row, "account_name", None),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable point-in-time net worth record.

    Invariant: entries are unique per account_id.
    """

    snapshot_id: int | None
    user_id: int
    date: datetime
    total_net_worth: Decimal
    base_currency: str
    entries: tuple[SnapshotEntry, ...] = ()

    def __post_init__(self) -> None:
        seen: set[int] = set()
        for entry in self.entries:
            if entry.account_id in seen:
                raise SnapshotValidationError(
                    f"duplicate entry for account {entry.account_id}",
                    snapshot_id=self.snapshot_id,
                    field="entries",
                )
            seen.add(entry.account_id)

    def entry_for(self, account_id: int) -> SnapshotEntry | None:
        for entry in self.entries:
            if entry.account_id == account_id:
                return entry
        return None

    @classmethod
    def from_model(cls, row: Any) -> Snapshot:
        """
        Build a snapshot from a NetWorthSnapshot row.

        Naive datetimes (SQLite) are read as UTC. A missing total is read as 0.

        Raises:
            SnapshotValidationError: Missing date, bad currency, bad entry
        """
        snapshot_id = getattr(row, "id", None)

        snapshot_date = getattr(row, "date", None)
        if snapshot_date is None:
            raise SnapshotValidationError("missing date", snapshot_id=snapshot_id, field="date")

        entries = tuple(
            SnapshotEntry.from_model(entry, snapshot_id=snapshot_id)
            for entry in (getattr(row, "entries", None) or [])
        )

        return cls(
            snapshot_id=snapshot_id,
            user_id=getattr(row, "user_id"),
            date=ensure_utc(snapshot_date),
            total_net_worth=_to_decimal(getattr(row, "total_net_worth", None), ZERO),
            base_currency=_snapshot_currency(
                getattr(row, "base_currency", None), snapshot_id, "base_currency"
            ),
            entries=entries,
        )


@dataclass(frozen=True)
class AccountHolding:
    """Live account as seen by the P&L calculator and exposure analyzer."""

    account_id: int
    name: str
    currency: str
    balance: Decimal
    opening_balance: Decimal
    is_active: bool = True
    include_in_net_worth: bool = True

    @classmethod
    def from_model(cls, row: Any) -> AccountHolding:
        return cls(
            account_id=row.id,
            name=row.name,
            currency=(row.currency or "").strip().upper(),
            balance=_to_decimal(row.balance, ZERO),
            opening_balance=_to_decimal(row.opening_balance, ZERO),
            is_active=bool(row.is_active),
            include_in_net_worth=bool(row.include_in_net_worth),
        )


# =============================================================================
# REVALUATION RESULTS
# =============================================================================

@dataclass
class CurrencyImpact:
    """
    Per-currency accumulator for one snapshot pair.

    previous_rate / current_rate are taken from the first matched account
    of the currency.
    """

    currency: str
    previous_rate: Decimal
    current_rate: Decimal
    previous_value: Decimal = ZERO
    current_value: Decimal = ZERO
    balance_change: Decimal = ZERO
    fx_impact: Decimal = ZERO
    accounts_matched: int = 0


@dataclass(frozen=True)
class SnapshotRevaluation:
    """
    FX / non-FX decomposition of the change between two snapshots.

    Invariant: non_fx_change + fx_impact == net_worth_change
    """

    start_date: datetime
    end_date: datetime
    previous_net_worth: Decimal
    current_net_worth: Decimal
    net_worth_change: Decimal
    fx_impact: Decimal
    non_fx_change: Decimal
    currency_impacts: list[CurrencyImpact]


@dataclass(frozen=True)
class RevaluationSummary:
    initial_net_worth: Decimal
    final_net_worth: Decimal
    total_change: Decimal
    total_fx_impact: Decimal
    non_fx_change: Decimal
    fx_attributed_percentage: Decimal
    snapshots_analyzed: int


@dataclass
class PeriodReport:
    """
    Result of generate_revaluation_report.

    When the window holds no snapshots, has_data is False, message explains
    why, summary is None and revaluations is empty.
    """

    user_id: int
    base_currency: str
    start_date: datetime
    end_date: datetime
    revaluations: list[SnapshotRevaluation] = field(default_factory=list)
    summary: RevaluationSummary | None = None
    message: str | None = None

    @property
    def has_data(self) -> bool:
        return self.summary is not None

    @property
    def snapshots_analyzed(self) -> int:
        return self.summary.snapshots_analyzed if self.summary else 0


# =============================================================================
# PER-ACCOUNT LOOKUP RESULTS
# =============================================================================

@dataclass(frozen=True)
class AccountFailure:
    """An account (or currency) left out of a report because a lookup failed."""

    account_id: int | None
    account_name: str | None
    currency: str
    reason: str


@dataclass(frozen=True)
class AccountPL:
    account_id: int
    account_name: str
    currency: str
    balance: Decimal
    acquisition_rate: Decimal
    current_rate: Decimal
    acquisition_value: Decimal
    current_value: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percentage: Decimal | None


@dataclass
class PLReport:
    user_id: int
    base_currency: str
    accounts: list[AccountPL] = field(default_factory=list)
    total_unrealized_pl: Decimal = ZERO
    failures: list[AccountFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class ExposureAccount:
    account_id: int
    name: str
    balance: Decimal


@dataclass
class CurrencyExposure:
    """Per-currency exposure bucket."""

    currency: str
    total_balance: Decimal = ZERO
    value_in_base: Decimal = ZERO
    percentage: Decimal = ZERO
    accounts: list[ExposureAccount] = field(default_factory=list)


@dataclass
class ExposureReport:
    """
    Currency exposure, largest value_in_base first.

    Invariant: percentages sum to ~100 when total_value_in_base > 0, and are
    all 0 otherwise.
    """

    user_id: int
    base_currency: str
    exposures: list[CurrencyExposure] = field(default_factory=list)
    total_value_in_base: Decimal = ZERO
    failures: list[AccountFailure] = field(default_factory=list)

    @property
    def currencies_count(self) -> int:
        return len(self.exposures)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


# =============================================================================
# RISK
# =============================================================================

@dataclass(frozen=True)
class ConcentrationRisk:
    currency: str
    percentage: Decimal
    value_in_base: Decimal


@dataclass(frozen=True)
class VolatilityAssessment:
    currency: str
    exposure_percentage: Decimal
    volatility: VolatilityClass
    annualized_volatility: Decimal
    recommendation: str


@dataclass(frozen=True)
class Recommendation:
    category: RecommendationCategory
    priority: RecommendationPriority
    message: str
    currencies: tuple[str, ...] = ()


@dataclass
class RiskAssessment:
    """
    Weighted currency risk score with supporting signals.

    risk_score is an integer in [0, 100]; the component scores are kept
    for observability.
    """

    user_id: int
    base_currency: str
    risk_score: int
    risk_level: RiskLevel
    concentration_score: Decimal
    volatility_score: Decimal
    loss_score: Decimal
    concentration_risks: list[ConcentrationRisk] = field(default_factory=list)
    volatility_assessments: list[VolatilityAssessment] = field(default_factory=list)
    total_unrealized_pl: Decimal = ZERO
    recommendations: list[Recommendation] = field(default_factory=list)
    failures: list[AccountFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failures)
