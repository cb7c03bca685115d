# currency_intel/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer is responsible for mapping these to appropriate HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidCurrencyError
    │   ├── InvalidDateRangeError
    │   └── SnapshotValidationError
    ├── NotFoundError
    │   └── UserNotFoundError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   └── RateLimitError
    └── FXRateError
        ├── FXRateNotFoundError
        └── FXConversionError

Per-account lookup failures inside a report are NOT raised to the caller;
the revaluation service records them as AccountFailure entries instead.
"""

from datetime import date


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    This is for programmatic validation errors (invalid parameters, malformed
    snapshot rows), NOT for request validation which is handled by Pydantic.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidCurrencyError(ValidationError):
    """Raised when a currency code is not a 3-letter ISO 4217 code."""

    def __init__(self, currency: str | None, field: str = "currency") -> None:
        self.currency = currency
        super().__init__(
            f"Invalid currency code: '{currency}'. Expected a 3-letter ISO 4217 code",
            field=field,
        )


class InvalidDateRangeError(ValidationError):
    """
    Raised when a reporting window starts after it ends.

    Attributes:
        start_date: Requested start of the window
        end_date: Requested end of the window
    """

    def __init__(self, start_date: date, end_date: date) -> None:
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"start_date ({start_date}) must not be after end_date ({end_date})",
            field="start_date",
        )


class SnapshotValidationError(ValidationError):
    """
    Raised when a stored snapshot cannot be turned into an engine value object.

    Attributes:
        snapshot_id: ID of the offending snapshot (if known)
    """

    def __init__(
            self,
            message: str,
            snapshot_id: int | None = None,
            field: str | None = None,
    ) -> None:
        self.snapshot_id = snapshot_id
        if snapshot_id is not None:
            message = f"Snapshot {snapshot_id}: {message}"
        super().__init__(message, field=field)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "User")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class UserNotFoundError(NotFoundError):
    """
    Raised when a user cannot be found.

    Attributes:
        user_id: ID of the user that was not found
    """

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(
            f"User {user_id} not found",
            resource_type="User",
            resource_id=user_id,
        )


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """
    Base exception for FX rate errors.

    Attributes:
        base_currency: The currency being priced (1 unit of this)
        quote_currency: The currency the price is expressed in
    """

    def __init__(
            self,
            message: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        super().__init__(message)


class FXRateNotFoundError(FXRateError):
    """
    Raised when no usable FX rate is available for a pair.

    This can happen when:
    - The currency pair is not supported by the provider
    - The provider returned no rows for the lookback window
    - Too few rates exist to compute volatility

    This is NOT a retryable error.

    Attributes:
        date: The date for which the rate was requested (None for spot rates)
    """

    def __init__(
            self,
            base_currency: str,
            quote_currency: str,
            rate_date: date | None = None,
            message: str | None = None
    ) -> None:
        self.date = rate_date
        if message is None:
            message = f"No FX rate found for {base_currency}/{quote_currency}"
            if rate_date is not None:
                message += f" on {rate_date}"
        super().__init__(message, base_currency=base_currency, quote_currency=quote_currency)


class FXConversionError(FXRateError):
    """
    Raised when a rate cannot be used for conversion.

    Examples:
    - Zero, negative or NaN rate returned by a provider
    - Attempting to invert a zero rate

    Attributes:
        reason: Specific reason for conversion failure
    """

    def __init__(
            self,
            reason: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            f"FX conversion error: {reason}",
            base_currency=base_currency,
            quote_currency=quote_currency,
        )


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "InvalidCurrencyError",
    "InvalidDateRangeError",
    "SnapshotValidationError",
    # Not Found
    "NotFoundError",
    "UserNotFoundError",
    # Market Data
    "MarketDataError",
    "ProviderUnavailableError",
    "RateLimitError",
    # FX
    "FXRateError",
    "FXRateNotFoundError",
    "FXConversionError",
]
