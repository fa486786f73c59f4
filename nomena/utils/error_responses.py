"""Builders for the structured error payloads used by the exception handlers."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from nomena.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from nomena.utils.request_context import get_request_id


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def validation_details(errors: Sequence[dict]) -> list[ValidationErrorDetail]:
    """Flatten pydantic error dicts into :class:`ValidationErrorDetail` items."""

    return [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error.get("loc", ())),
            message=error.get("msg", ""),
            value=error.get("input"),
        )
        for error in errors
    ]


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    return ValidationErrorResponse(
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id() or None,
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str | None,
    status_code: int,
    path: str,
    retry_after: int | None = None,
    favorite_id: str | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Return an :class:`ErrorResponse` stamped with time and request id."""

    return ErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id() or None,
        path=path,
        retry_after=retry_after,
        favorite_id=favorite_id,
    )


__all__ = [
    "build_error_response",
    "build_validation_error_response",
    "validation_details",
]
