# currency_intel/services/forex/__init__.py
"""
FX rate capability.

Structure:
    forex/
    ├── provider.py   # FXQuoteProvider ABC with retry, RateHistory
    ├── yahoo.py      # Yahoo Finance implementation
    ├── types.py      # RateQuote, ConversionResult, VolatilityResult, ...
    └── service.py    # ForexService (cache, conversion, volatility, P&L)
"""

from currency_intel.services.forex.provider import FXQuoteProvider, RateHistory, RatePoint
from currency_intel.services.forex.service import ForexService, QuoteCache, classify_volatility
from currency_intel.services.forex.types import (
    ConversionResult,
    RateQuote,
    UnrealizedPLRequest,
    UnrealizedPLResult,
    VolatilityClass,
    VolatilityResult,
)
from currency_intel.services.forex.yahoo import YahooFXProvider

__all__ = [
    "FXQuoteProvider",
    "RateHistory",
    "RatePoint",
    "YahooFXProvider",
    "ForexService",
    "QuoteCache",
    "classify_volatility",
    "ConversionResult",
    "RateQuote",
    "UnrealizedPLRequest",
    "UnrealizedPLResult",
    "VolatilityClass",
    "VolatilityResult",
]
