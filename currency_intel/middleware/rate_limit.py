# currency_intel/middleware/rate_limit.py
"""
Per-client rate limiting with slowapi.

The currency endpoints make one rate-provider call per account, so they are
limited harder than plain reads (see RATE_LIMIT_ANALYTICS in
currency_intel/services/constants.py).

Key by: Client IP (X-Forwarded-For only from trusted proxies)
Storage: In-memory
Disabled when RATE_LIMIT_ENABLED=false (the test suite does this).

Usage:
    @router.get("/risk")
    @limiter.limit(RATE_LIMIT_ANALYTICS)
    def get_risk(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from currency_intel.config import settings
from currency_intel.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_ANALYTICS,
)

logger = logging.getLogger(__name__)

# Seconds a throttled client is told to wait
RETRY_AFTER_SECONDS = 60


def _get_client_ip(request: Request) -> str:
    """
    Client IP used as the rate limit key.

    Forwarded headers are honoured only when the direct peer is a trusted
    proxy (or TRUST_PROXY_HEADERS is set); otherwise clients could spoof
    their own key.
    """
    direct_ip = get_remote_address(request)

    if settings.trust_proxy_headers or direct_ip in settings.trusted_proxy_ips:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return direct_ip


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard ErrorDetail shape, with Retry-After."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": RETRY_AFTER_SECONDS},
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_HEALTH",
    "RATE_LIMIT_ANALYTICS",
]
