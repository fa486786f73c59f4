"""SQLAlchemy ORM model for the favorites table.

The mapping describes the *current* canonical schema. Deployed databases may
lag behind it (the first release only had ``id``, ``name``, ``gender``,
``theme`` and ``created_at``), which is why the favorites store never relies on
this model for reads or writes and instead addresses columns individually. The
model exists for Alembic autogeneration and for creating fresh SQLite
development databases.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from nomena.settings import DEFAULT_FAVORITES_TABLE


def utcnow():
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def new_favorite_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    pass


class FavoriteRecord(Base):
    """A bookmarked baby name together with its enrichment text."""

    __tablename__ = DEFAULT_FAVORITES_TABLE

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_favorite_id
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    theme: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    user_email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Owner identity. Every row currently belongs to the guest owner.",
    )
    meaning: Mapped[str | None] = mapped_column(Text, nullable=True)
    origin: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Canonical long-form description; supersedes the legacy columns.",
    )
    informative_description: Mapped[str | None] = mapped_column(
        "informativeDescription", Text, nullable=True
    )
    poetic_description: Mapped[str | None] = mapped_column(
        "poeticDescription", Text, nullable=True
    )
    history: Mapped[str | None] = mapped_column(Text, nullable=True)
    used_wiki: Mapped[bool | None] = mapped_column(
        "usedWiki", Boolean, nullable=True, default=False
    )


__all__ = ["Base", "FavoriteRecord", "new_favorite_id", "utcnow"]
