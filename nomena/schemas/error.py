"""Structured error payloads returned by every exception handler."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    UPSTREAM_ERROR = "upstream_error"
    INTERNAL_ERROR = "internal_error"


class ErrorResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_type": "storage_unavailable",
                "message": "Favorites storage is unavailable, please try again",
                "detail": "Your favorite was not saved; retry it from the list.",
                "status_code": 503,
                "timestamp": "2026-10-19T10:30:00Z",
                "request_id": "5f0c6c1e-8d0e-4b8e-9b8a-0c3f2d6f1a7e",
                "path": "/favorites",
                "retry_after": 5,
                "favorite_id": "0b7d3c52-3f4e-4a61-9c1e-2f8a6d5b9e04",
            }
        }
    )

    error_type: ErrorType = Field(..., description="Category of error")
    message: str = Field(..., description="Human-readable error message")
    detail: str | None = Field(None, description="Additional context safe to show")
    status_code: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = Field(None, description="Value of the X-Request-ID header")
    path: str | None = None
    retry_after: int | None = Field(None, description="Seconds to wait before retrying")
    favorite_id: str | None = Field(
        None, description="Id to pass to the retry endpoint when a save failed"
    )


class ValidationErrorDetail(BaseModel):
    field: str
    message: str
    value: Any = None


class ValidationErrorResponse(ErrorResponse):
    error_type: ErrorType = ErrorType.VALIDATION_ERROR
    errors: list[ValidationErrorDetail] = Field(default_factory=list)


__all__ = [
    "ErrorResponse",
    "ErrorType",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
]
