# currency_intel/services/currency.py
"""
Currency code normalisation shared by the services and the API schemas.
"""

import re

from currency_intel.services.exceptions import InvalidCurrencyError

# ISO 4217 format (3 uppercase letters)
CURRENCY_PATTERN = re.compile(r'^[A-Z]{3}$')


def normalize_currency(value: str | None, field: str = "currency") -> str:
    """
    Trim and upper-case a currency code.

    Raises:
        InvalidCurrencyError: If the result is not a 3-letter code
    """
    if value is None:
        raise InvalidCurrencyError(value, field=field)

    normalized = value.strip().upper()
    if not CURRENCY_PATTERN.match(normalized):
        raise InvalidCurrencyError(value, field=field)

    return normalized
