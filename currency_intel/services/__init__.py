# currency_intel/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Are easily testable via dependency injection

Usage:
    from currency_intel.services import ForexService, RevaluationService
    from currency_intel.services import UserNotFoundError, FXRateNotFoundError

Architecture:
    services/
    ├── __init__.py          # This file - main exports
    ├── exceptions.py        # Domain exceptions
    ├── constants.py         # Scoring model, thresholds, limits
    ├── currency.py          # Currency code normalisation
    ├── protocols.py         # Collaborator interfaces (Protocol classes)
    ├── stores.py            # SQLAlchemy snapshot/account lookups
    ├── forex/               # FX rate capability
    │   ├── provider.py      # Abstract provider with retry
    │   ├── yahoo.py         # Yahoo Finance implementation
    │   ├── types.py         # Quote, conversion, volatility, P&L types
    │   └── service.py       # ForexService
    └── revaluation/         # Revaluation and risk engine
        ├── types.py         # Snapshots, reports, enums
        ├── calculators.py   # Revaluator, aggregator, exposure
        ├── risk.py          # Risk scoring and recommendations
        └── service.py       # RevaluationService
"""

from currency_intel.services.forex import ForexService, FXQuoteProvider, YahooFXProvider
from currency_intel.services.revaluation import RevaluationService
from currency_intel.services.stores import SqlAccountStore, SqlSnapshotStore

from currency_intel.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidCurrencyError,
    InvalidDateRangeError,
    SnapshotValidationError,
    NotFoundError,
    UserNotFoundError,
    MarketDataError,
    ProviderUnavailableError,
    RateLimitError,
    FXRateError,
    FXRateNotFoundError,
    FXConversionError,
)

__all__ = [
    # Services
    "ForexService",
    "FXQuoteProvider",
    "YahooFXProvider",
    "RevaluationService",
    "SqlAccountStore",
    "SqlSnapshotStore",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidCurrencyError",
    "InvalidDateRangeError",
    "SnapshotValidationError",
    "NotFoundError",
    "UserNotFoundError",
    "MarketDataError",
    "ProviderUnavailableError",
    "RateLimitError",
    "FXRateError",
    "FXRateNotFoundError",
    "FXConversionError",
]
