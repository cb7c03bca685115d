# currency_intel/services/forex/types.py
"""
Data types returned by ForexService.

Rate convention everywhere: rate = how many `to_currency` one unit of
`from_currency` buys. Converted amount = amount × rate.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class VolatilityClass(str, Enum):
    """Bucket for annualized FX volatility."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def is_elevated(self) -> bool:
        """High and very high both count toward the volatility risk score."""
        return self in (VolatilityClass.HIGH, VolatilityClass.VERY_HIGH)


@dataclass(frozen=True)
class RateQuote:
    """A spot rate and where it came from."""
    from_currency: str
    to_currency: str
    rate: Decimal
    as_of: datetime
    source: str


@dataclass(frozen=True)
class ConversionResult:
    amount: Decimal
    from_currency: str
    to_currency: str
    rate: Decimal
    converted_amount: Decimal


@dataclass(frozen=True)
class VolatilityResult:
    """
    Annualized volatility of a currency against a base currency.

    Attributes:
        annualized_volatility: Sample std of daily returns × √252, as a
            fraction (0.08 = 8%)
        volatility_score: Classification of annualized_volatility
        recommendation: Fixed guidance text for the class
        observations: Number of daily returns used
    """
    currency: str
    base_currency: str
    annualized_volatility: Decimal
    volatility_score: VolatilityClass
    recommendation: str
    observations: int


@dataclass(frozen=True)
class UnrealizedPLRequest:
    """
    Inputs for an unrealized P&L calculation.

    current_rate may be supplied by callers that already fetched it;
    otherwise ForexService looks it up.
    """
    currency: str
    amount: Decimal
    acquisition_rate: Decimal
    base_currency: str
    current_rate: Decimal | None = None


@dataclass(frozen=True)
class UnrealizedPLResult:
    currency: str
    base_currency: str
    amount: Decimal
    acquisition_rate: Decimal
    current_rate: Decimal
    acquisition_value: Decimal
    current_value: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percentage: Decimal | None
