# currency_intel/services/forex/service.py
"""
Real-time FX rate capability used by the revaluation engine.

ForexService wraps an FXQuoteProvider with:
- Same-currency short-circuit (rate 1, no provider call)
- A thread-safe TTL quote cache shared across requests
- Conversion, volatility classification and unrealized P&L maths

Rate convention: rate = how many to_currency one from_currency buys.
    EUR -> USD at 1.08 means 1 EUR = 1.08 USD
    converted_amount = amount × rate
"""

import logging
import threading
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from currency_intel.services.constants import (
    FX_QUOTE_CACHE_MAX_SIZE,
    HUNDRED,
    MIN_RETURNS_FOR_VOLATILITY,
    ONE,
    TRADING_DAYS_PER_YEAR,
    VOLATILITY_HIGH_MAX,
    VOLATILITY_LOW_MAX,
    VOLATILITY_MEDIUM_MAX,
    ZERO,
)
from currency_intel.services.currency import normalize_currency
from currency_intel.services.exceptions import FXConversionError, FXRateNotFoundError
from currency_intel.services.forex.provider import FXQuoteProvider
from currency_intel.services.forex.types import (
    ConversionResult,
    RateQuote,
    UnrealizedPLRequest,
    UnrealizedPLResult,
    VolatilityClass,
    VolatilityResult,
)

logger = logging.getLogger(__name__)


VOLATILITY_RECOMMENDATIONS: dict[VolatilityClass, str] = {
    VolatilityClass.LOW: "Stable currency. Suitable for long-term holdings.",
    VolatilityClass.MEDIUM: "Moderate fluctuations. Review exposure periodically.",
    VolatilityClass.HIGH: "Significant fluctuations. Consider limiting exposure.",
    VolatilityClass.VERY_HIGH: "Extreme fluctuations. Consider hedging or reducing exposure.",
}


def classify_volatility(annualized_volatility: Decimal) -> VolatilityClass:
    """Map annualized volatility (fraction) to a VolatilityClass."""
    if annualized_volatility < VOLATILITY_LOW_MAX:
        return VolatilityClass.LOW
    if annualized_volatility < VOLATILITY_MEDIUM_MAX:
        return VolatilityClass.MEDIUM
    if annualized_volatility < VOLATILITY_HIGH_MAX:
        return VolatilityClass.HIGH
    return VolatilityClass.VERY_HIGH


def _daily_returns(rates: list[Decimal]) -> list[Decimal]:
    """Simple returns r_t = p_t / p_(t-1) - 1, skipping non-positive bases."""
    returns = []
    for prev, curr in zip(rates, rates[1:]):
        if prev <= ZERO:
            continue
        returns.append(curr / prev - ONE)
    return returns


def _annualized_volatility(returns: list[Decimal]) -> Decimal:
    """Sample standard deviation × √252, in pure Decimal arithmetic."""
    n = Decimal(len(returns))
    mean = sum(returns, ZERO) / n
    variance = sum(((r - mean) ** 2 for r in returns), ZERO) / (n - ONE)
    return variance.sqrt() * Decimal(TRADING_DAYS_PER_YEAR).sqrt()


class QuoteCache:
    """
    Thread-safe bounded LRU cache with TTL for spot quotes.

    Keyed by (from_currency, to_currency). A TTL of 0 disables caching.
    """

    def __init__(self, ttl_seconds: int, max_size: int = FX_QUOTE_CACHE_MAX_SIZE):
        self._cache: OrderedDict[tuple[str, str], tuple[datetime, RateQuote]] = OrderedDict()
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_size = max_size
        self._lock = threading.Lock()

    def get(self, from_currency: str, to_currency: str) -> RateQuote | None:
        key = (from_currency, to_currency)
        with self._lock:
            if key in self._cache:
                stored_at, quote = self._cache[key]
                if datetime.now(timezone.utc) - stored_at < self._ttl:
                    self._cache.move_to_end(key)
                    logger.debug(f"Quote cache hit for {from_currency}/{to_currency}")
                    return quote
                del self._cache[key]
        return None

    def set(self, quote: RateQuote) -> None:
        key = (quote.from_currency, quote.to_currency)
        with self._lock:
            if key in self._cache:
                del self._cache[key]
            while len(self._cache) >= self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
            self._cache[key] = (datetime.now(timezone.utc), quote)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


class ForexService:
    """
    FX rate lookups, conversion, volatility and unrealized P&L.

    Stateless apart from the quote cache, so one instance is shared by the
    whole application (see currency_intel/dependencies.py).

    Example:
        service = ForexService(YahooFXProvider())
        service.convert_real_time(Decimal("100"), "EUR", "USD").converted_amount
    """

    def __init__(
            self,
            provider: FXQuoteProvider,
            cache_ttl_seconds: int = 300,
            volatility_lookback_days: int = 90,
    ) -> None:
        self._provider = provider
        self._cache = QuoteCache(ttl_seconds=cache_ttl_seconds)
        self._volatility_lookback_days = volatility_lookback_days

    @property
    def provider_name(self) -> str:
        return self._provider.name

    @property
    def cached_quote_count(self) -> int:
        return len(self._cache)

    # =========================================================================
    # RATES AND CONVERSION
    # =========================================================================

    def get_real_time_rate(self, from_currency: str, to_currency: str) -> RateQuote:
        """
        Current rate for 1 from_currency in to_currency.

        Raises:
            InvalidCurrencyError: Malformed currency code
            FXRateNotFoundError: Pair unknown to the provider
            FXConversionError: Provider returned an unusable rate
            ProviderUnavailableError / RateLimitError: After retries
        """
        from_currency = normalize_currency(from_currency, field="from_currency")
        to_currency = normalize_currency(to_currency, field="to_currency")

        if from_currency == to_currency:
            return RateQuote(
                from_currency=from_currency,
                to_currency=to_currency,
                rate=ONE,
                as_of=datetime.now(timezone.utc),
                source="identity",
            )

        cached = self._cache.get(from_currency, to_currency)
        if cached is not None:
            return cached

        rate = self._provider.get_spot_rate(from_currency, to_currency)
        if rate.is_nan() or rate <= ZERO:
            raise FXConversionError(
                f"Provider '{self._provider.name}' returned rate {rate}",
                base_currency=from_currency,
                quote_currency=to_currency,
            )

        quote = RateQuote(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            as_of=datetime.now(timezone.utc),
            source=self._provider.name,
        )
        self._cache.set(quote)
        logger.debug(f"Fetched {from_currency}/{to_currency} = {rate} from {self._provider.name}")
        return quote

    def convert_real_time(
            self,
            amount: Decimal,
            from_currency: str,
            to_currency: str,
    ) -> ConversionResult:
        """Convert amount from one currency to another at the current rate."""
        quote = self.get_real_time_rate(from_currency, to_currency)
        return ConversionResult(
            amount=amount,
            from_currency=quote.from_currency,
            to_currency=quote.to_currency,
            rate=quote.rate,
            converted_amount=amount * quote.rate,
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    # =========================================================================
    # VOLATILITY
    # =========================================================================

    def get_currency_volatility(
            self,
            currency: str,
            base_currency: str,
            as_of: datetime | None = None,
    ) -> VolatilityResult:
        """
        Classify how much `currency` moves against `base_currency`.

        Uses daily closes over the configured lookback window ending at
        as_of (default now).

        Raises:
            FXRateNotFoundError: Fewer than 2 daily returns available
        """
        currency = normalize_currency(currency)
        base_currency = normalize_currency(base_currency, field="base_currency")

        if currency == base_currency:
            return VolatilityResult(
                currency=currency,
                base_currency=base_currency,
                annualized_volatility=ZERO,
                volatility_score=VolatilityClass.LOW,
                recommendation=VOLATILITY_RECOMMENDATIONS[VolatilityClass.LOW],
                observations=0,
            )

        end_date = (as_of or datetime.now(timezone.utc)).date()
        start_date = end_date - timedelta(days=self._volatility_lookback_days)

        history = self._provider.get_historical_rates(currency, base_currency, start_date, end_date)
        returns = _daily_returns(history.rates)

        if len(returns) < MIN_RETURNS_FOR_VOLATILITY:
            raise FXRateNotFoundError(
                currency,
                base_currency,
                message=(
                    f"Not enough rate history for {currency}/{base_currency} "
                    f"({len(returns)} returns between {start_date} and {end_date})"
                ),
            )

        volatility = _annualized_volatility(returns)
        volatility_class = classify_volatility(volatility)

        logger.debug(
            f"Volatility {currency}/{base_currency}: {volatility:.4f} "
            f"({volatility_class.value}, {len(returns)} returns)"
        )

        return VolatilityResult(
            currency=currency,
            base_currency=base_currency,
            annualized_volatility=volatility,
            volatility_score=volatility_class,
            recommendation=VOLATILITY_RECOMMENDATIONS[volatility_class],
            observations=len(returns),
        )

    # =========================================================================
    # UNREALIZED P&L
    # =========================================================================

    def calculate_unrealized_pl(self, request: UnrealizedPLRequest) -> UnrealizedPLResult:
        """
        Unrealized gain or loss of holding `amount` of a currency.

        acquisition_value = amount × acquisition_rate
        current_value     = amount × current_rate
        unrealized_pl     = current_value - acquisition_value
        percentage        = unrealized_pl / |acquisition_value| × 100
                            (None when acquisition_value is 0)
        """
        currency = normalize_currency(request.currency)
        base_currency = normalize_currency(request.base_currency, field="base_currency")

        current_rate = request.current_rate
        if current_rate is None:
            current_rate = self.get_real_time_rate(currency, base_currency).rate

        acquisition_value = request.amount * request.acquisition_rate
        current_value = request.amount * current_rate
        unrealized_pl = current_value - acquisition_value

        percentage = None
        if acquisition_value != ZERO:
            percentage = unrealized_pl / abs(acquisition_value) * HUNDRED

        return UnrealizedPLResult(
            currency=currency,
            base_currency=base_currency,
            amount=request.amount,
            acquisition_rate=request.acquisition_rate,
            current_rate=current_rate,
            acquisition_value=acquisition_value,
            current_value=current_value,
            unrealized_pl=unrealized_pl,
            unrealized_pl_percentage=percentage,
        )
