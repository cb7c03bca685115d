# currency_intel/routers/__init__.py
"""
API routers for the Currency Intelligence service.

- revaluation: Revaluation, unrealized P&L, exposure and risk under
  /users/{id}/currency
"""

from currency_intel.routers.revaluation import router as revaluation_router

__all__ = [
    "revaluation_router",
]
