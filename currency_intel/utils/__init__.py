# currency_intel/utils/__init__.py
"""
Cross-cutting utilities:
- logging: Logging setup with correlation ID support
- context: Request-scoped correlation ID
- date_utils: Timezone normalisation and reporting windows
"""

from currency_intel.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from currency_intel.utils.date_utils import ensure_utc, resolve_window
from currency_intel.utils.logging import setup_logging

__all__ = [
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "ensure_utc",
    "resolve_window",
]
