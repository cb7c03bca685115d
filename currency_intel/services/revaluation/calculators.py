# currency_intel/services/revaluation/calculators.py
"""
Pure calculators for the revaluation engine.

Each calculator does one thing and never talks to the database or the rate
provider; RevaluationService fetches the inputs and handles lookup failures.

- SnapshotRevaluator: FX / non-FX decomposition of one snapshot pair
- ReportAggregator: Drives the revaluator over an ordered window
- AcquisitionRateEstimator: Approximate cost-basis rate for an account
- ExposureAnalyzer: Buckets converted balances by currency

Usage:
    revaluation = SnapshotRevaluator().revalue(previous, current, "USD")
    revaluation.fx_impact + revaluation.non_fx_change == revaluation.net_worth_change
"""

import logging
from decimal import Decimal

from currency_intel.services.constants import HUNDRED, ZERO
from currency_intel.services.revaluation.types import (
    AccountHolding,
    CurrencyExposure,
    CurrencyImpact,
    ExposureAccount,
    RevaluationSummary,
    Snapshot,
    SnapshotRevaluation,
)

logger = logging.getLogger(__name__)


# =============================================================================
# SNAPSHOT REVALUATOR
# =============================================================================

class SnapshotRevaluator:
    """
    Splits the net worth change between two snapshots into FX impact and
    everything else.

    Algorithm:
        1. Match every entry of `current` to the entry of `previous` with the
           same account_id. New accounts and accounts whose currency changed
           are left out (no stable rate baseline).
        2. Group matched pairs by currency and accumulate
               fx_impact += current.balance × (current.rate - previous.rate)
        3. non_fx_change = net_worth_change - Σ fx_impact

    The FX term holds the ending balance fixed. It is exact when the balance
    did not move during the period and a linear approximation otherwise.
    """

    def revalue(
            self,
            previous: Snapshot,
            current: Snapshot,
            base_currency: str,
    ) -> SnapshotRevaluation:
        impacts: dict[str, CurrencyImpact] = {}

        for current_entry in current.entries:
            previous_entry = previous.entry_for(current_entry.account_id)
            if previous_entry is None or previous_entry.currency != current_entry.currency:
                continue

            impact = impacts.get(current_entry.currency)
            if impact is None:
                impact = CurrencyImpact(
                    currency=current_entry.currency,
                    previous_rate=previous_entry.exchange_rate,
                    current_rate=current_entry.exchange_rate,
                )
                impacts[current_entry.currency] = impact

            rate_change = current_entry.exchange_rate - previous_entry.exchange_rate

            impact.previous_value += previous_entry.balance_in_base_currency
            impact.current_value += current_entry.balance_in_base_currency
            impact.balance_change += current_entry.balance - previous_entry.balance
            impact.fx_impact += current_entry.balance * rate_change
            impact.accounts_matched += 1

        currency_impacts = list(impacts.values())
        total_fx_impact = sum((c.fx_impact for c in currency_impacts), ZERO)
        net_worth_change = current.total_net_worth - previous.total_net_worth

        if previous.base_currency != base_currency or current.base_currency != base_currency:
            logger.debug(
                f"Snapshots {previous.snapshot_id}/{current.snapshot_id} recorded in "
                f"{previous.base_currency}/{current.base_currency}, reported as {base_currency}"
            )

        return SnapshotRevaluation(
            start_date=previous.date,
            end_date=current.date,
            previous_net_worth=previous.total_net_worth,
            current_net_worth=current.total_net_worth,
            net_worth_change=net_worth_change,
            fx_impact=total_fx_impact,
            non_fx_change=net_worth_change - total_fx_impact,
            currency_impacts=currency_impacts,
        )


# =============================================================================
# REPORT AGGREGATOR
# =============================================================================

class ReportAggregator:
    """
    Runs SnapshotRevaluator over consecutive pairs of a date-ordered window
    and totals the result.

    Pairs are processed strictly in order: each pair's "previous" is the
    prior element of the sequence.
    """

    def __init__(self, revaluator: SnapshotRevaluator | None = None) -> None:
        self._revaluator = revaluator or SnapshotRevaluator()

    def aggregate(
            self,
            snapshots: list[Snapshot],
            base_currency: str,
    ) -> tuple[list[SnapshotRevaluation], RevaluationSummary]:
        """
        Args:
            snapshots: At least one snapshot, sorted by date ascending

        Raises:
            ValueError: If snapshots is empty
        """
        if not snapshots:
            raise ValueError("at least one snapshot is required")

        revaluations = [
            self._revaluator.revalue(previous, current, base_currency)
            for previous, current in zip(snapshots, snapshots[1:])
        ]

        total_fx_impact = sum((r.fx_impact for r in revaluations), ZERO)
        initial = snapshots[0].total_net_worth
        final = snapshots[-1].total_net_worth
        total_change = final - initial

        summary = RevaluationSummary(
            initial_net_worth=initial,
            final_net_worth=final,
            total_change=total_change,
            total_fx_impact=total_fx_impact,
            non_fx_change=total_change - total_fx_impact,
            fx_attributed_percentage=fx_attributed_percentage(total_fx_impact, total_change),
            snapshots_analyzed=len(snapshots),
        )
        return revaluations, summary


def fx_attributed_percentage(total_fx_impact: Decimal, total_change: Decimal) -> Decimal:
    """total_fx_impact / |total_change| × 100, or 0 when nothing changed."""
    if total_change == ZERO:
        return ZERO
    return total_fx_impact / abs(total_change) * HUNDRED


# =============================================================================
# ACQUISITION RATE ESTIMATOR
# =============================================================================

class AcquisitionRateEstimator:
    """
    Approximates the rate at which a foreign-currency account was acquired.

    Without cost-basis history the only signal is the account's growth since
    opening: balance / opening_balance. When the opening balance is not
    positive the current rate is used, which means zero unrealized P&L.
    This is an approximation, not an authoritative cost basis.
    """

    def estimate(self, holding: AccountHolding, current_rate: Decimal) -> Decimal:
        if holding.opening_balance > ZERO:
            return holding.balance / holding.opening_balance
        return current_rate


# =============================================================================
# EXPOSURE ANALYZER
# =============================================================================

class ExposureAnalyzer:
    """
    Buckets accounts by currency and computes each bucket's share of the
    total base-currency value.

    Output is sorted by value_in_base, largest first. Percentages are 0 when
    the total is not positive.
    """

    def analyze(
            self,
            valued_holdings: list[tuple[AccountHolding, Decimal]],
    ) -> tuple[list[CurrencyExposure], Decimal]:
        """
        Args:
            valued_holdings: (holding, balance converted to base currency)

        Returns:
            (exposures sorted descending by value_in_base, total value in base)
        """
        buckets: dict[str, CurrencyExposure] = {}
        total_value = ZERO

        for holding, value_in_base in valued_holdings:
            bucket = buckets.get(holding.currency)
            if bucket is None:
                bucket = CurrencyExposure(currency=holding.currency)
                buckets[holding.currency] = bucket

            bucket.total_balance += holding.balance
            bucket.value_in_base += value_in_base
            bucket.accounts.append(
                ExposureAccount(
                    account_id=holding.account_id,
                    name=holding.name,
                    balance=holding.balance,
                )
            )
            total_value += value_in_base

        exposures = list(buckets.values())
        for exposure in exposures:
            if total_value > ZERO:
                exposure.percentage = exposure.value_in_base / total_value * HUNDRED
            else:
                exposure.percentage = ZERO

        exposures.sort(key=lambda e: e.value_in_base, reverse=True)
        return exposures, total_value
