# currency_intel/services/forex/provider.py
"""
Abstract interface for FX quote providers.

ForexService depends on this abstraction, never on a concrete data source.
Implementations only need to answer two questions:
- What is 1 unit of FROM worth in TO right now?
- What were the daily closing rates for FROM/TO over a window?

Retry behavior is implemented once here and shared by every provider.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from currency_intel.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class RatePoint:
    """
    One daily closing rate.

    Attributes:
        date: Trading date
        rate: 1 unit of from_currency expressed in to_currency
    """

    date: date
    rate: Decimal

    def __post_init__(self) -> None:
        if self.rate <= 0:
            raise ValueError(f"rate must be positive, got {self.rate}")


@dataclass
class RateHistory:
    """
    Daily closing rates for a currency pair, oldest first.

    Attributes:
        from_currency: Currency being priced
        to_currency: Currency the price is expressed in
        points: Rate observations sorted by date
    """

    from_currency: str
    to_currency: str
    points: list[RatePoint] = field(default_factory=list)

    @property
    def days_fetched(self) -> int:
        return len(self.points)

    @property
    def rates(self) -> list[Decimal]:
        return [p.rate for p in self.points]


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class FXQuoteProvider(ABC):
    """
    Abstract base class for FX quote providers.

    Retry Behavior:
        `_execute_with_retry` applies exponential backoff. Subclasses (and
        tests) tune it through class attributes:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

    Retryable Exceptions:
        - ProviderUnavailableError: Network issues, timeouts, server errors
        - RateLimitError: API rate limit exceeded

    Non-Retryable Exceptions:
        - FXRateNotFoundError: Pair unknown to the provider
        - FXConversionError: Provider returned an unusable rate
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier used in logs and error messages."""
        pass

    @abstractmethod
    def get_spot_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """
        Latest available rate: 1 from_currency = rate to_currency.

        Raises:
            FXRateNotFoundError: Pair not available
            FXConversionError: Provider returned zero, negative or NaN
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    @abstractmethod
    def get_historical_rates(
            self,
            from_currency: str,
            to_currency: str,
            start_date: date,
            end_date: date,
    ) -> RateHistory:
        """
        Daily closing rates between start_date and end_date (inclusive).

        Raises:
            FXRateNotFoundError: Pair not available
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    @staticmethod
    def build_symbol(from_currency: str, to_currency: str) -> str:
        """Build the conventional FX symbol, e.g. EURUSD=X."""
        return f"{from_currency.upper()}{to_currency.upper()}=X"

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with exponential backoff on transient failures.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()
