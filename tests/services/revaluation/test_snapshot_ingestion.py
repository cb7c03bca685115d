# tests/services/revaluation/test_snapshot_ingestion.py
"""
Tests for converting stored snapshot rows into engine value objects.

Rows are simulated with SimpleNamespace; the conversion only reads
attributes, so no database is needed.
"""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from currency_intel.services.exceptions import SnapshotValidationError, ValidationError
from currency_intel.services.revaluation.types import AccountHolding, Snapshot, SnapshotEntry


def entry_row(**overrides) -> SimpleNamespace:
    values = {
        "account_id": 1,
        "account_name": "Savings",
        "currency": "EUR",
        "balance": Decimal("1000"),
        "balance_in_base_currency": Decimal("1100"),
        "exchange_rate": Decimal("1.1"),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def snapshot_row(entries=None, **overrides) -> SimpleNamespace:
    values = {
        "id": 7,
        "user_id": 1,
        "date": datetime(2024, 1, 31, 12, 0),
        "base_currency": "USD",
        "total_net_worth": Decimal("1100"),
        "entries": entries if entries is not None else [entry_row()],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


# =============================================================================
# SNAPSHOT ENTRY
# =============================================================================

class TestSnapshotEntryFromModel:

    def test_copies_fields(self):
        entry = SnapshotEntry.from_model(entry_row(), snapshot_id=7)

        assert entry.account_id == 1
        assert entry.account_name == "Savings"
        assert entry.currency == "EUR"
        assert entry.balance == Decimal("1000")
        assert entry.balance_in_base_currency == Decimal("1100")
        assert entry.exchange_rate == Decimal("1.1")

    def test_missing_rate_defaults_to_one(self):
        entry = SnapshotEntry.from_model(entry_row(exchange_rate=None))

        assert entry.exchange_rate == Decimal("1")

    def test_missing_base_value_defaults_to_zero(self):
        entry = SnapshotEntry.from_model(entry_row(balance_in_base_currency=None))

        assert entry.balance_in_base_currency == Decimal("0")

    def test_currency_is_upper_cased(self):
        entry = SnapshotEntry.from_model(entry_row(currency=" eur "))

        assert entry.currency == "EUR"

    @pytest.mark.parametrize("rate", [Decimal("0"), Decimal("-1.1"), Decimal("NaN")])
    def test_rejects_unusable_rate(self, rate):
        with pytest.raises(SnapshotValidationError) as exc_info:
            SnapshotEntry.from_model(entry_row(exchange_rate=rate), snapshot_id=7)

        assert exc_info.value.field == "exchange_rate"
        assert "Snapshot 7" in str(exc_info.value)

    @pytest.mark.parametrize("currency", [None, "", "EURO", "E1R"])
    def test_rejects_bad_currency(self, currency):
        with pytest.raises(SnapshotValidationError) as exc_info:
            SnapshotEntry.from_model(entry_row(currency=currency))

        assert exc_info.value.field == "currency"

    def test_rejects_missing_account_id(self):
        with pytest.raises(SnapshotValidationError):
            SnapshotEntry.from_model(entry_row(account_id=None))

    def test_is_a_validation_error(self):
        """Malformed snapshots surface as client-visible validation errors."""
        with pytest.raises(ValidationError):
            SnapshotEntry.from_model(entry_row(exchange_rate=Decimal("0")))


# =============================================================================
# SNAPSHOT
# =============================================================================

class TestSnapshotFromModel:

    def test_naive_date_is_read_as_utc(self):
        snapshot = Snapshot.from_model(snapshot_row())

        assert snapshot.date == datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)

    def test_entries_are_converted(self):
        snapshot = Snapshot.from_model(snapshot_row(entries=[
            entry_row(account_id=1),
            entry_row(account_id=2, currency="USD", exchange_rate=None),
        ]))

        assert len(snapshot.entries) == 2
        assert snapshot.entry_for(2).exchange_rate == Decimal("1")
        assert snapshot.entry_for(3) is None

    def test_missing_total_defaults_to_zero(self):
        snapshot = Snapshot.from_model(snapshot_row(total_net_worth=None))

        assert snapshot.total_net_worth == Decimal("0")

    def test_rejects_duplicate_account(self):
        with pytest.raises(SnapshotValidationError) as exc_info:
            Snapshot.from_model(snapshot_row(entries=[entry_row(account_id=1), entry_row(account_id=1)]))

        assert "duplicate" in str(exc_info.value)

    def test_rejects_missing_date(self):
        with pytest.raises(SnapshotValidationError) as exc_info:
            Snapshot.from_model(snapshot_row(date=None))

        assert exc_info.value.field == "date"

    def test_rejects_bad_base_currency(self):
        with pytest.raises(SnapshotValidationError) as exc_info:
            Snapshot.from_model(snapshot_row(base_currency="dollars"))

        assert exc_info.value.field == "base_currency"

    def test_snapshot_is_immutable(self):
        snapshot = Snapshot.from_model(snapshot_row())

        with pytest.raises(AttributeError):
            snapshot.total_net_worth = Decimal("0")


class TestAccountHoldingFromModel:

    def test_normalises_currency_and_balances(self):
        row = SimpleNamespace(
            id=3,
            name="Travel",
            currency="gbp",
            balance=Decimal("250"),
            opening_balance=None,
            is_active=True,
            include_in_net_worth=False,
        )

        holding = AccountHolding.from_model(row)

        assert holding.account_id == 3
        assert holding.currency == "GBP"
        assert holding.opening_balance == Decimal("0")
        assert holding.include_in_net_worth is False
