# currency_intel/services/protocols.py
"""
Protocol interfaces for service dependency injection.

RevaluationService only depends on these structural interfaces:
- Production wiring uses the SQLAlchemy stores and ForexService
- Tests pass in-memory fakes without inheriting anything
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from currency_intel.services.forex.types import (
        ConversionResult,
        RateQuote,
        UnrealizedPLRequest,
        UnrealizedPLResult,
        VolatilityResult,
    )
    from currency_intel.services.revaluation.types import AccountHolding, Snapshot


class SnapshotStoreProtocol(Protocol):
    """Snapshot lookup required by the report aggregator."""

    def find_snapshots(
        self,
        db: Session,
        user_id: int,
        start: datetime,
        end: datetime,
    ) -> list[Snapshot]:
        """Snapshots with start <= date <= end, oldest first."""
        ...


class AccountStoreProtocol(Protocol):
    """Account lookup required by the P&L calculator and exposure analyzer."""

    def find_active_accounts(
        self,
        db: Session,
        user_id: int,
        exclude_currency: str | None = None,
        net_worth_only: bool = False,
    ) -> list[AccountHolding]:
        ...


class RateServiceProtocol(Protocol):
    """Rate capability required by RevaluationService (see ForexService)."""

    def get_real_time_rate(self, from_currency: str, to_currency: str) -> RateQuote:
        ...

    def convert_real_time(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
    ) -> ConversionResult:
        ...

    def get_currency_volatility(self, currency: str, base_currency: str) -> VolatilityResult:
        ...

    def calculate_unrealized_pl(self, request: UnrealizedPLRequest) -> UnrealizedPLResult:
        ...
