# currency_intel/schemas/errors.py
"""
Error bodies returned by the global exception handlers in main.py.

Every non-2xx response from the API uses {error, message, details}; only
request validation failures carry a list of per-parameter issues.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error body."""

    error: str = Field(
        ...,
        description="Exception class name, e.g. 'UserNotFoundError' or 'FXRateNotFoundError'",
    )
    message: str = Field(..., description="Human-readable explanation")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Structured context such as the offending field or currency pair",
    )


class ValidationIssue(BaseModel):
    """One rejected query or path parameter."""

    field: str = Field(..., description="Dotted location, e.g. 'query.start_date'")
    message: str
    type: str


class ValidationErrorDetail(BaseModel):
    """422 body for requests FastAPI could not bind."""

    error: str = "ValidationError"
    message: str = "Request validation failed"
    details: list[ValidationIssue]

    @classmethod
    def from_request_errors(cls, errors: Iterable[Mapping[str, Any]]) -> "ValidationErrorDetail":
        return cls(
            details=[
                ValidationIssue(
                    field=".".join(str(loc) for loc in error["loc"]),
                    message=error["msg"],
                    type=error["type"],
                )
                for error in errors
            ]
        )
