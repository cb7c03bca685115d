# currency_intel/dependencies.py
"""
Dependency injection module for FastAPI services.

Services are singletons shared across requests so the FX quote cache is
shared too. They are created lazily on first use to avoid import-time
side effects (no network client is built until a request needs one).

Usage in routers:
    from currency_intel.dependencies import get_revaluation_service, get_existing_user_id

    @router.get("/risk")
    def get_risk(
        user_id: int = Depends(get_existing_user_id),
        service: RevaluationService = Depends(get_revaluation_service),
    ):
        ...
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Path
from sqlalchemy.orm import Session

from currency_intel.config import settings
from currency_intel.database import get_db
from currency_intel.services.exceptions import UserNotFoundError
from currency_intel.services.forex import ForexService, FXQuoteProvider, YahooFXProvider
from currency_intel.services.revaluation import RevaluationService
from currency_intel.services.stores import SqlAccountStore, SqlSnapshotStore, user_exists

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: provider -> forex service -> revaluation service


@lru_cache(maxsize=1)
def get_fx_provider() -> FXQuoteProvider:
    logger.debug("Initializing singleton YahooFXProvider")
    return YahooFXProvider(timeout=settings.fx_provider_timeout)


@lru_cache(maxsize=1)
def get_forex_service() -> ForexService:
    """Shared ForexService; its quote cache is process-wide."""
    logger.debug("Initializing singleton ForexService")
    return ForexService(
        provider=get_fx_provider(),
        cache_ttl_seconds=settings.fx_quote_cache_ttl_seconds,
        volatility_lookback_days=settings.fx_volatility_lookback_days,
    )


@lru_cache(maxsize=1)
def get_revaluation_service() -> RevaluationService:
    logger.debug("Initializing singleton RevaluationService")
    return RevaluationService(
        rate_service=get_forex_service(),
        snapshot_store=SqlSnapshotStore(),
        account_store=SqlAccountStore(),
        default_base_currency=settings.default_base_currency,
        default_window_days=settings.revaluation_default_window_days,
    )


# =============================================================================
# REQUEST DEPENDENCIES
# =============================================================================


def get_existing_user_id(
    user_id: Annotated[int, Path(ge=1, description="User ID")],
    db: Annotated[Session, Depends(get_db)],
) -> int:
    """
    Path dependency that checks the user exists.

    Raises:
        UserNotFoundError: Mapped to 404 by the global handler
    """
    if not user_exists(db, user_id):
        raise UserNotFoundError(user_id)
    return user_id


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """Drop all singletons; the next request builds fresh ones."""
    get_fx_provider.cache_clear()
    get_forex_service.cache_clear()
    get_revaluation_service.cache_clear()
    logger.info("Cleared all service singleton caches")
