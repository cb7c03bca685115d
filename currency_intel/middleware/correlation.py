# currency_intel/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

Every request gets an ID, taken from the first header present of:
1. X-Correlation-ID
2. X-Request-ID
otherwise a fresh UUID4. The ID is stored in the request context (so every
log line carries it) and echoed back in the X-Correlation-ID response header.

Client Usage:
    curl -H "X-Correlation-ID: trace-123" http://localhost:8000/users/1/currency/risk
"""

import logging
import time
import uuid
from typing import Callable

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from currency_intel.utils.context import set_correlation_id, clear_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


def resolve_correlation_id(headers: Headers) -> str:
    """Pick the caller's correlation ID, or generate one."""
    for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
        value = headers.get(header)
        if value:
            return value
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation ID to the request context and the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers)
        set_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id

            logger.debug(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"in {(time.perf_counter() - started) * 1000:.1f}ms"
            )
            return response
        finally:
            clear_correlation_id()
