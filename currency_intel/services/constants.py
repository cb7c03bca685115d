# currency_intel/services/constants.py
"""
Centralized constants for the Currency Intelligence services.

The risk scoring weights and thresholds below are a fixed contract: callers
compare scores across users and over time, so they are deliberately NOT
exposed as settings.

Usage:
    from currency_intel.services.constants import (
        HIGH_CONCENTRATION_THRESHOLD,
        CONCENTRATION_WEIGHT,
        TRADING_DAYS_PER_YEAR,
    )
"""

from decimal import Decimal


# =============================================================================
# UTILITY CONSTANTS
# =============================================================================

# Type-safe Decimal constants for comparisons and defaults
ZERO: Decimal = Decimal("0")
ONE: Decimal = Decimal("1")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# FINANCIAL CALENDAR CONSTANTS
# =============================================================================

# Standard number of trading days in a year
# Used for annualizing the volatility of daily FX returns
TRADING_DAYS_PER_YEAR: int = 252

# Minimum daily returns needed for a standard deviation
MIN_RETURNS_FOR_VOLATILITY: int = 2


# =============================================================================
# SNAPSHOT DEFAULTS
# =============================================================================

# Exchange rate assumed when a snapshot entry has none recorded
# 1 = "already in base currency"
DEFAULT_EXCHANGE_RATE: Decimal = ONE

# Base-currency value assumed when a snapshot entry has none recorded
DEFAULT_BASE_VALUE: Decimal = ZERO

# Message returned instead of a report when the window holds no snapshots
NO_SNAPSHOTS_MESSAGE: str = "No snapshots found in date range"


# =============================================================================
# RISK SCORING MODEL
# =============================================================================

# A non-base currency holding more than this share (percent) of the
# portfolio counts as a concentration risk
HIGH_CONCENTRATION_THRESHOLD: Decimal = Decimal("30")

# Sum of concentrated percentages is multiplied by this before capping
CONCENTRATION_MULTIPLIER: Decimal = Decimal("2")

# Unrealized loss (in base currency) that maps to one loss-score point
# 1000 -> a 100,000 loss saturates the loss score
LOSS_SCORE_DIVISOR: Decimal = Decimal("1000")

# Upper bound for every component score and the composite score
SCORE_CAP: Decimal = HUNDRED

# Component weights (sum to 1)
CONCENTRATION_WEIGHT: Decimal = Decimal("0.4")
VOLATILITY_WEIGHT: Decimal = Decimal("0.4")
LOSS_WEIGHT: Decimal = Decimal("0.2")

# Risk level boundaries on the unrounded weighted score (strictly greater)
HIGH_RISK_THRESHOLD: int = 70
MEDIUM_RISK_THRESHOLD: int = 40


# =============================================================================
# VOLATILITY CLASSIFICATION
# =============================================================================

# Annualized volatility (as a fraction) upper bounds for each class
# < 5% low, < 10% medium, < 15% high, otherwise very_high
VOLATILITY_LOW_MAX: Decimal = Decimal("0.05")
VOLATILITY_MEDIUM_MAX: Decimal = Decimal("0.10")
VOLATILITY_HIGH_MAX: Decimal = Decimal("0.15")


# =============================================================================
# CACHE SETTINGS
# =============================================================================

# Maximum number of FX quotes kept in the in-process quote cache
# One entry per currency pair, so this is generous
FX_QUOTE_CACHE_MAX_SIZE: int = 500


# =============================================================================
# DECIMAL PRECISION CONSTANTS
# =============================================================================

# FX rates: 8 decimal places
RATE_PRECISION: Decimal = Decimal("0.00000001")


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# Format follows slowapi/limits syntax: "100/minute", "10/hour", etc.

# Default rate limit applied to every endpoint without an explicit limit
RATE_LIMIT_DEFAULT: str = "100/minute"

# Currency intelligence endpoints hit the FX provider once per account
RATE_LIMIT_ANALYTICS: str = "30/minute"

# Higher limit for monitoring tools that poll frequently
RATE_LIMIT_HEALTH: str = "300/minute"
