"""Pydantic schemas that power the favorites layer and its API surface.

Field aliases match the column names of the remote ``favorites`` table (and the
JSON written to the local fallback file), so rows can be validated directly and
payloads dumped with ``by_alias=True``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nomena.settings import DEFAULT_GUEST_OWNER

PLACEHOLDER_TEXT = "Information not available"
UNKNOWN_ORIGIN = "Unknown"


class Gender(str, Enum):
    BOY = "boy"
    GIRL = "girl"
    NEUTRAL = "neutral"


class PersistenceMode(str, Enum):
    """Where a session's favorites currently live."""

    REMOTE = "remote"
    LOCAL = "local"


class DescriptionStatus(str, Enum):
    """Per-record enrichment outcome tracked by the description cache."""

    PENDING = "pending"
    SAVED = "saved"
    UNSAVED = "unsaved"
    FAILED = "failed"
    DISCARDED = "discarded"


def _coerce_gender(value: Any) -> Any:
    """Read unknown stored genders as absent instead of rejecting the row."""

    if value is None or isinstance(value, Gender):
        return value
    candidate = str(value).strip().lower()
    if candidate in {gender.value for gender in Gender}:
        return candidate
    return None


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class FavoriteFields(BaseModel):
    """Optional attributes shared by drafts and stored favorites."""

    model_config = ConfigDict(populate_by_name=True)

    gender: Gender | None = None
    theme: str | None = Field(None, max_length=255)
    meaning: str | None = None
    origin: str | None = None
    description: str | None = Field(
        None, description="Canonical long-form enrichment text."
    )
    informative_description: str | None = Field(
        None, alias="informativeDescription", description="Legacy enrichment field."
    )
    poetic_description: str | None = Field(
        None, alias="poeticDescription", description="Legacy enrichment field."
    )
    history: str | None = Field(None, description="Legacy enrichment field.")

    @field_validator("gender", mode="before")
    @classmethod
    def _normalize_gender(cls, value: Any) -> Any:
        return _coerce_gender(value)

    @field_validator(
        "theme",
        "meaning",
        "origin",
        "description",
        "informative_description",
        "poetic_description",
        "history",
        mode="before",
    )
    @classmethod
    def _normalize_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class FavoriteDraft(FavoriteFields):
    """A favorite the user wants to save.

    ``name`` is deliberately unconstrained here: emptiness is reported by the
    stores as a domain ``ValidationError`` so every backend rejects it the same
    way. ``id`` is usually pre-assigned by the optimistic view so the
    placeholder entry and the stored record share an identifier.
    """

    id: str | None = None
    name: str = ""
    owner: str | None = Field(None, alias="user_email")
    used_wiki: bool = Field(False, alias="usedWiki")


class FavoriteUpdate(FavoriteFields):
    """Partial update; only explicitly set fields are written."""

    name: str | None = None
    used_wiki: bool | None = Field(None, alias="usedWiki")

    def changes(self) -> dict[str, Any]:
        """Return the explicitly set fields keyed by Python field name."""

        return self.model_dump(mode="json", exclude_unset=True)


class Favorite(FavoriteFields):
    """A stored favorite as read from the remote table or the local cache."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    created_at: datetime
    owner: str = Field(DEFAULT_GUEST_OWNER, alias="user_email")
    used_wiki: bool = Field(False, alias="usedWiki")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        """PostgreSQL UUID columns come back as :class:`uuid.UUID`."""

        return str(value) if value is not None else value

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Naive timestamps (SQLite) are stored in UTC."""

        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("owner", mode="before")
    @classmethod
    def _default_owner(cls, value: Any) -> Any:
        return value or DEFAULT_GUEST_OWNER

    @field_validator("used_wiki", mode="before")
    @classmethod
    def _default_used_wiki(cls, value: Any) -> Any:
        return bool(value) if value is not None else False

    @property
    def legacy_description(self) -> str | None:
        return (
            self.informative_description or self.poetic_description or self.history
        )

    @property
    def has_description(self) -> bool:
        return bool(self.description or self.legacy_description)

    def resolved_description(self) -> str:
        """Return the authoritative enrichment text, never ``None``."""

        return self.description or self.legacy_description or PLACEHOLDER_TEXT

    def to_record(self) -> dict[str, Any]:
        """Serialize using column names, as written to the local cache file."""

        return self.model_dump(mode="json", by_alias=True)


class FavoriteCreate(BaseModel):
    """Request body for saving a generated name.

    ``id`` lets a client pick the identifier up front, so a save that fails can
    be retried without reading it back from the error response.
    """

    id: UUID | None = None
    name: str = Field(..., description="The generated name being bookmarked.")
    gender: Gender | None = None
    theme: str | None = Field(None, max_length=255)
    meaning: str | None = None
    origin: str | None = None
    description: str | None = None

    def to_draft(self) -> FavoriteDraft:
        data = self.model_dump(exclude={"id"})
        return FavoriteDraft(**data, id=str(self.id) if self.id else None)


class RenderedFavorite(Favorite):
    """Favorite as shown to the user: placeholders applied, status attached."""

    display_description: str
    display_meaning: str
    display_origin: str
    pending: bool = False
    description_status: DescriptionStatus | None = None


class FailedFavorite(BaseModel):
    id: str
    name: str
    gender: Gender | None = None
    theme: str | None = None


class FavoriteListResponse(BaseModel):
    """Container returned by the listing endpoints."""

    mode: PersistenceMode
    total: int
    favorites: list[RenderedFavorite]
    failed: list[FailedFavorite] = Field(
        default_factory=list,
        description="Saves that failed this session and can be retried by id.",
    )


class FavoriteModeResponse(BaseModel):
    mode: PersistenceMode


class DescriptionResult(BaseModel):
    """Outcome of an on-demand enrichment request."""

    favorite: RenderedFavorite
    status: DescriptionStatus
    error: str | None = None


class CertificateData(BaseModel):
    """Fields consumed by the external PDF certificate renderer."""

    name: str
    history: str
    meaning: str


__all__ = [
    "CertificateData",
    "DescriptionResult",
    "DescriptionStatus",
    "FailedFavorite",
    "Favorite",
    "FavoriteCreate",
    "FavoriteDraft",
    "FavoriteFields",
    "FavoriteListResponse",
    "FavoriteModeResponse",
    "FavoriteUpdate",
    "Gender",
    "PLACEHOLDER_TEXT",
    "PersistenceMode",
    "RenderedFavorite",
    "UNKNOWN_ORIGIN",
]
