# currency_intel/services/forex/yahoo.py
"""
Yahoo Finance FX quote provider.

Yahoo publishes currency pairs as pseudo-tickers: EURUSD=X is the price of
1 EUR in USD. Both spot and historical lookups read the daily "Close"
column of Ticker.history().

Limitations:
- Rate limits exist but are not documented
- Spot quotes are the latest daily close, possibly delayed
"""

import logging
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

import yfinance as yf

from currency_intel.services.constants import RATE_PRECISION
from currency_intel.services.exceptions import (
    FXConversionError,
    FXRateNotFoundError,
    ProviderUnavailableError,
    RateLimitError,
)
from currency_intel.services.forex.provider import FXQuoteProvider, RateHistory, RatePoint

logger = logging.getLogger(__name__)


class YahooFXProvider(FXQuoteProvider):
    """
    Yahoo Finance implementation of FXQuoteProvider.

    Example:
        provider = YahooFXProvider(timeout=15)
        provider.get_spot_rate("EUR", "USD")   # Decimal("1.08540000")
    """

    # Spot lookups read the last close inside this window so that
    # weekends and holidays still return a rate
    SPOT_LOOKBACK_PERIOD: str = "5d"

    def __init__(self, timeout: int = 10) -> None:
        self._timeout = timeout
        logger.info(f"YahooFXProvider initialized (timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "yahoo"

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_spot_rate(self, from_currency: str, to_currency: str) -> Decimal:
        return self._execute_with_retry(self._fetch_spot_rate, from_currency, to_currency)

    def get_historical_rates(
            self,
            from_currency: str,
            to_currency: str,
            start_date: date,
            end_date: date,
    ) -> RateHistory:
        return self._execute_with_retry(
            self._fetch_historical_rates,
            from_currency,
            to_currency,
            start_date,
            end_date,
        )

    # =========================================================================
    # FETCHERS (called by the retry wrapper)
    # =========================================================================

    def _fetch_spot_rate(self, from_currency: str, to_currency: str) -> Decimal:
        from_currency = from_currency.strip().upper()
        to_currency = to_currency.strip().upper()
        symbol = self.build_symbol(from_currency, to_currency)

        logger.debug(f"Fetching spot rate for {symbol}")

        try:
            df = yf.Ticker(symbol).history(
                period=self.SPOT_LOOKBACK_PERIOD,
                interval="1d",
                timeout=self._timeout,
            )
        except Exception as e:
            raise self._map_error(e, symbol, from_currency, to_currency) from e

        if df is None or df.empty or "Close" not in df:
            raise FXRateNotFoundError(from_currency, to_currency)

        closes = df["Close"].dropna()
        if closes.empty:
            raise FXRateNotFoundError(from_currency, to_currency)

        rate = self._to_decimal(closes.iloc[-1])
        if rate is None or rate <= 0:
            raise FXConversionError(
                f"Provider returned unusable rate {closes.iloc[-1]!r} for {symbol}",
                base_currency=from_currency,
                quote_currency=to_currency,
            )

        return rate

    def _fetch_historical_rates(
            self,
            from_currency: str,
            to_currency: str,
            start_date: date,
            end_date: date,
    ) -> RateHistory:
        from_currency = from_currency.strip().upper()
        to_currency = to_currency.strip().upper()
        symbol = self.build_symbol(from_currency, to_currency)

        logger.debug(f"Fetching historical rates for {symbol}: {start_date} to {end_date}")

        try:
            # Yahoo Finance end date is exclusive
            df = yf.Ticker(symbol).history(
                start=start_date.isoformat(),
                end=(end_date + timedelta(days=1)).isoformat(),
                interval="1d",
                timeout=self._timeout,
            )
        except Exception as e:
            raise self._map_error(e, symbol, from_currency, to_currency) from e

        if df is None or df.empty:
            raise FXRateNotFoundError(
                from_currency,
                to_currency,
                message=f"No rates for {symbol} between {start_date} and {end_date}",
            )

        history = RateHistory(from_currency=from_currency, to_currency=to_currency)
        for idx, row in df.iterrows():
            rate = self._to_decimal(row.get("Close"))
            if rate is None or rate <= 0:
                logger.warning(f"Skipping {symbol} row {idx}: unusable close")
                continue
            rate_date = idx.date() if hasattr(idx, "date") else idx
            history.points.append(RatePoint(date=rate_date, rate=rate))

        history.points.sort(key=lambda p: p.date)
        logger.debug(f"Fetched {history.days_fetched} rates for {symbol}")
        return history

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _map_error(
            self,
            error: Exception,
            symbol: str,
            from_currency: str,
            to_currency: str,
    ) -> Exception:
        """Translate a yfinance failure into the service exception hierarchy."""
        error_str = str(error).lower()

        if "not found" in error_str or "no data" in error_str or "delisted" in error_str:
            return FXRateNotFoundError(from_currency, to_currency)

        if "rate limit" in error_str or "too many requests" in error_str:
            return RateLimitError(provider=self.name)

        logger.error(f"Yahoo Finance error for {symbol}: {error}")
        return ProviderUnavailableError(provider=self.name, reason=str(error))

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value)).quantize(RATE_PRECISION)
        except (TypeError, ValueError):
            return None
