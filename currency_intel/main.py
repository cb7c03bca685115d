# currency_intel/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers the currency intelligence router
- Defines global endpoints (health checks)
"""

import logging

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session

from currency_intel.config import settings
from currency_intel.database import get_db, ping
from currency_intel.dependencies import get_forex_service
from currency_intel.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from currency_intel.routers import revaluation_router
from currency_intel.schemas.errors import ErrorDetail, ValidationErrorDetail
from currency_intel.services.forex import ForexService
from currency_intel.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidCurrencyError,
    NotFoundError,
    MarketDataError,
    RateLimitError,
    FXRateError,
)
from currency_intel.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Multi-currency net worth revaluation and currency risk analysis API",
    version="0.1.0",
)

# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions become ErrorDetail responses here. Handlers are
# resolved by exception class MRO, so the most specific one wins.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle missing resources (404)."""
    logger.warning(f"{exc.resource_type} not found: {exc.resource_id}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={"resource_type": exc.resource_type, "resource_id": exc.resource_id},
        ).model_dump(),
    )


@app.exception_handler(InvalidCurrencyError)
async def invalid_currency_handler(request: Request, exc: InvalidCurrencyError) -> JSONResponse:
    """Handle malformed currency codes (422)."""
    logger.warning(f"Invalid currency: {exc}")
    return JSONResponse(
        status_code=422,
        content=ErrorDetail(
            error="InvalidCurrencyError",
            message=str(exc),
            details={"field": exc.field, "currency": exc.currency},
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle domain validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(RateLimitError)
async def provider_rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle upstream rate provider throttling (429)."""
    logger.warning(f"Rate provider throttled: {exc}")
    return JSONResponse(
        status_code=429,
        content=ErrorDetail(
            error="RateLimitError",
            message=str(exc),
            details={"retry_after": exc.retry_after} if exc.retry_after else None,
        ).model_dump(),
    )


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    """Handle rate provider outages (503)."""
    logger.error(f"Market data error: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={"provider": exc.provider} if exc.provider else None,
        ).model_dump(),
    )


@app.exception_handler(FXRateError)
async def fx_rate_error_handler(request: Request, exc: FXRateError) -> JSONResponse:
    """Handle exchange rates that could not be obtained (503)."""
    logger.error(f"FX rate error: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={
                "base_currency": exc.base_currency,
                "quote_currency": exc.quote_currency,
            } if exc.base_currency else None,
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Re-shape FastAPI's {"detail": ...} into ErrorDetail."""
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed query/path parameters (422)."""
    body = ValidationErrorDetail.from_request_errors(exc.errors())
    logger.info(f"Rejected request parameters: {[issue.field for issue in body.details]}")
    return JSONResponse(status_code=422, content=body.model_dump())


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(revaluation_router)  # /users/{id}/currency/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(
    request: Request,
    db: Session = Depends(get_db),
    forex: ForexService = Depends(get_forex_service),
):
    """
    Health check with per-dependency detail.

    Returns HTTP 503 when the snapshot store is unreachable. The FX provider
    is informational: a provider outage only turns into per-account
    failures, never a failed request.
    """
    db_error = ping(db)
    database = {"status": "healthy" if db_error is None else "unhealthy", "critical": True}
    if db_error is not None:
        database["error"] = db_error

    response_data = {
        "status": database["status"],
        "checks": {
            "database": database,
            "fx_provider": {
                "status": "configured",
                "critical": False,
                "provider": forex.provider_name,
                "cached_quotes": forex.cached_quote_count,
            },
        },
    }

    if db_error is not None:
        return JSONResponse(status_code=503, content=response_data)
    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Liveness probe: 200 whenever the process is up."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Readiness probe: 503 while the snapshot store is unreachable."""
    if ping(db) is not None:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
    return {"status": "ready"}
