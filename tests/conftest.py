# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Fake FX quote provider
- Sample data factories (ORM rows and engine value objects)
"""

import os

# Settings are read at import time; force the test profile first
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from currency_intel.database import build_engine
from currency_intel.models import (
    Account,
    AccountType,
    Base,
    NetWorthSnapshot,
    SnapshotAccountEntry,
    User,
)
from currency_intel.services.exceptions import FXRateNotFoundError
from currency_intel.services.forex import ForexService, FXQuoteProvider
from currency_intel.services.forex.provider import RateHistory, RatePoint
from currency_intel.services.revaluation.types import Snapshot, SnapshotEntry


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# FAKE FX QUOTE PROVIDER
# =============================================================================

class FakeFXQuoteProvider(FXQuoteProvider):
    """
    In-process FXQuoteProvider for testing.

    Spot rates, rate histories and errors are configured per pair. Pairs
    with nothing configured raise FXRateNotFoundError, like an unknown
    Yahoo symbol.
    """

    def __init__(self):
        self._spot: dict[tuple[str, str], Decimal] = {}
        self._history: dict[tuple[str, str], list[Decimal]] = {}
        self._errors: dict[tuple[str, str], Exception] = {}
        self.spot_calls: list[tuple[str, str]] = []
        self.history_calls: list[tuple[str, str, date, date]] = []

    @property
    def name(self) -> str:
        return "fake"

    def set_rate(self, from_currency: str, to_currency: str, rate: Decimal | str) -> None:
        self._spot[(from_currency, to_currency)] = Decimal(str(rate))

    def set_history(self, from_currency: str, to_currency: str, rates: list[Decimal | str]) -> None:
        """Daily closes, oldest first."""
        self._history[(from_currency, to_currency)] = [Decimal(str(r)) for r in rates]

    def set_error(self, from_currency: str, to_currency: str, error: Exception) -> None:
        self._errors[(from_currency, to_currency)] = error

    def get_spot_rate(self, from_currency: str, to_currency: str) -> Decimal:
        key = (from_currency, to_currency)
        self.spot_calls.append(key)
        if key in self._errors:
            raise self._errors[key]
        if key not in self._spot:
            raise FXRateNotFoundError(from_currency, to_currency)
        return self._spot[key]

    def get_historical_rates(
            self,
            from_currency: str,
            to_currency: str,
            start_date: date,
            end_date: date,
    ) -> RateHistory:
        key = (from_currency, to_currency)
        self.history_calls.append((from_currency, to_currency, start_date, end_date))
        if key in self._errors:
            raise self._errors[key]
        if key not in self._history:
            raise FXRateNotFoundError(from_currency, to_currency)

        rates = self._history[key]
        first_day = end_date - timedelta(days=len(rates) - 1)
        return RateHistory(
            from_currency=from_currency,
            to_currency=to_currency,
            points=[RatePoint(date=first_day + timedelta(days=i), rate=r) for i, r in enumerate(rates)],
        )


@pytest.fixture
def fake_provider() -> FakeFXQuoteProvider:
    """Provide a fresh fake provider for each test."""
    return FakeFXQuoteProvider()


@pytest.fixture
def forex_service(fake_provider: FakeFXQuoteProvider) -> ForexService:
    """ForexService over the fake provider, with caching disabled."""
    return ForexService(provider=fake_provider, cache_ttl_seconds=0)


# Low volatility: ~0.3% annualized
STABLE_HISTORY = ["1.1000", "1.1001", "1.1000", "1.1001", "1.1000", "1.1001"]
# Very high volatility: swings of ~5% a day
WILD_HISTORY = ["100", "105", "99", "106", "98", "104"]
# Medium volatility: alternating 0.5% moves, roughly 8-9% annualised
MEDIUM_HISTORY = ["100", "100.5", "100", "100.5", "100", "100.5"]


# =============================================================================
# ORM FACTORIES
# =============================================================================

def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def create_user(db: Session, email: str = "test@example.com", preferred_currency: str = "USD") -> User:
    """Create and persist a test user."""
    user = User(email=email, preferred_currency=preferred_currency)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_account(
        db: Session,
        user: User,
        name: str = "Checking",
        currency: str = "USD",
        balance: Decimal | str = "1000",
        opening_balance: Decimal | str | None = None,
        account_type: AccountType = AccountType.CHECKING,
        is_active: bool = True,
        include_in_net_worth: bool = True,
) -> Account:
    """Create and persist a live account (opening balance defaults to balance)."""
    balance = Decimal(str(balance))
    account = Account(
        user_id=user.id,
        name=name,
        currency=currency,
        balance=balance,
        opening_balance=Decimal(str(opening_balance)) if opening_balance is not None else balance,
        account_type=account_type,
        is_active=is_active,
        include_in_net_worth=include_in_net_worth,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def create_snapshot(
        db: Session,
        user: User,
        snapshot_date: datetime,
        total_net_worth: Decimal | str,
        entries: list[dict] | None = None,
        base_currency: str = "USD",
) -> NetWorthSnapshot:
    """
    Create and persist a snapshot.

    Each entry dict takes the SnapshotAccountEntry column names; missing
    exchange_rate / balance_in_base_currency are stored as NULL.
    """
    snapshot = NetWorthSnapshot(
        user_id=user.id,
        date=snapshot_date,
        base_currency=base_currency,
        total_net_worth=Decimal(str(total_net_worth)),
    )
    for entry in entries or []:
        snapshot.entries.append(SnapshotAccountEntry(
            account_id=entry["account_id"],
            account_name=entry.get("account_name"),
            currency=entry["currency"],
            balance=Decimal(str(entry["balance"])),
            balance_in_base_currency=(
                Decimal(str(entry["balance_in_base_currency"]))
                if entry.get("balance_in_base_currency") is not None else None
            ),
            exchange_rate=(
                Decimal(str(entry["exchange_rate"]))
                if entry.get("exchange_rate") is not None else None
            ),
        ))
    db.add(snapshot)
    db.commit()
    db.refresh(snapshot)
    return snapshot


# =============================================================================
# VALUE OBJECT FACTORIES
# =============================================================================

def make_entry(
        account_id: int,
        currency: str,
        balance: Decimal | str,
        exchange_rate: Decimal | str = "1",
        balance_in_base_currency: Decimal | str | None = None,
) -> SnapshotEntry:
    """Snapshot entry; base value defaults to balance × rate."""
    balance = Decimal(str(balance))
    rate = Decimal(str(exchange_rate))
    base_value = (
        Decimal(str(balance_in_base_currency))
        if balance_in_base_currency is not None else balance * rate
    )
    return SnapshotEntry(
        account_id=account_id,
        currency=currency,
        balance=balance,
        balance_in_base_currency=base_value,
        exchange_rate=rate,
    )


def make_snapshot(
        snapshot_date: datetime,
        entries: list[SnapshotEntry],
        total_net_worth: Decimal | str | None = None,
        snapshot_id: int | None = None,
        base_currency: str = "USD",
) -> Snapshot:
    """Snapshot; total defaults to the sum of the entries' base values."""
    total = (
        Decimal(str(total_net_worth))
        if total_net_worth is not None
        else sum((e.balance_in_base_currency for e in entries), Decimal("0"))
    )
    return Snapshot(
        snapshot_id=snapshot_id,
        user_id=1,
        date=snapshot_date,
        total_net_worth=total,
        base_currency=base_currency,
        entries=tuple(entries),
    )


@pytest.fixture
def sample_user(db: Session) -> User:
    return create_user(db)
