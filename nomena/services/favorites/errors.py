"""Typed outcomes raised by the favorites persistence layer.

Messages (``str(exc)``) are safe to show to users. Raw backend error text is
kept on ``detail`` for logging and never rendered.
"""

from __future__ import annotations


class FavoritesError(Exception):
    """Base class for favorites persistence failures."""

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        favorite_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        # Set when the attempted favorite was kept for a later retry.
        self.favorite_id = favorite_id


class ValidationError(FavoritesError, ValueError):
    """A required field is missing; surfaced immediately, never retried."""


class SchemaMismatch(FavoritesError):
    """The live remote schema rejected a write (unknown or required column)."""


class StoreUnavailable(FavoritesError):
    """Any other remote failure: network, timeout, server error."""


class FavoriteNotFound(FavoritesError, LookupError):
    """The targeted favorite does not exist (anymore)."""


def classify_backend_error(message: str) -> type[FavoritesError]:
    """Map a raw backend error message onto the mismatch/unavailable split.

    Unknown columns (PostgreSQL ``column "x" ... does not exist``, SQLite
    ``has no column named x`` / ``no such column``) and not-null violations
    mean the payload does not fit the deployed schema.
    """

    lowered = message.lower()
    if "column" in lowered:
        return SchemaMismatch
    if "not-null constraint" in lowered or "not null constraint" in lowered:
        return SchemaMismatch
    return StoreUnavailable


__all__ = [
    "FavoriteNotFound",
    "FavoritesError",
    "SchemaMismatch",
    "StoreUnavailable",
    "ValidationError",
    "classify_backend_error",
]
