"""Remote favorites store backed by the hosted relational database."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import column, delete, insert, literal_column, select, table, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nomena.schemas.favorites import Favorite, FavoriteDraft, FavoriteUpdate
from nomena.services.favorites.columns import favorites_table, to_columns
from nomena.services.favorites.errors import (
    FavoriteNotFound,
    FavoritesError,
    SchemaMismatch,
    StoreUnavailable,
    ValidationError,
    classify_backend_error,
)
from nomena.services.favorites.schema_probe import SchemaProber, build_insert_payload
from nomena.settings import DEFAULT_GUEST_OWNER

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REMOTE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


def favorite_from_row(row: Mapping[str, Any]) -> Favorite | None:
    """Validate a raw table row, filling identifiers older rows may lack."""

    data = dict(row)
    if not data.get("id"):
        data["id"] = str(uuid4())
    if not data.get("created_at"):
        data["created_at"] = datetime.now(timezone.utc)
    try:
        return Favorite.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning("Skipping unreadable favorite row %s: %s", data.get("id"), exc)
        return None


def _error_text(exc: BaseException) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc) or type(exc).__name__


def validate_draft(draft: FavoriteDraft) -> None:
    if not draft.name or not draft.name.strip():
        raise ValidationError("Name is required")


def validate_changes(changes: dict[str, Any]) -> None:
    if not changes:
        raise ValidationError("No fields to update")
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Name is required")


class FavoriteStore:
    """CRUD facade over the remote ``favorites`` table.

    Every operation opens its own short-lived session so a store instance can
    outlive individual HTTP requests. Backend failures are translated into
    :class:`SchemaMismatch` (payload does not fit the deployed schema) or
    :class:`StoreUnavailable` (everything else).
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        prober: SchemaProber,
        *,
        table_name: str,
        owner: str = DEFAULT_GUEST_OWNER,
    ) -> None:
        self._session_factory = session_factory
        self._prober = prober
        self._table_name = table_name
        self._owner = owner

    async def list_favorites(self) -> list[Favorite]:
        """Return every favorite, newest first."""

        query = (
            select(literal_column("*"))
            .select_from(table(self._table_name))
            .order_by(column("created_at").desc())
        )

        async def _list(session: AsyncSession) -> list[Favorite]:
            result = await session.execute(query)
            return [
                favorite
                for favorite in map(favorite_from_row, result.mappings().all())
                if favorite is not None
            ]

        return await self._run("list favorites", _list, writes=False)

    async def create_favorite(self, draft: FavoriteDraft) -> Favorite:
        validate_draft(draft)
        capabilities = await self._prober.probe()
        favorite_id = draft.id or str(uuid4())
        payload = build_insert_payload(
            draft,
            capabilities,
            favorite_id=favorite_id,
            created_at=datetime.now(timezone.utc),
            owner=self._owner,
        )
        statement = insert(favorites_table(self._table_name, payload)).values(**payload)

        async def _create(session: AsyncSession) -> Favorite:
            await session.execute(statement)
            await session.commit()
            stored = await self._fetch(session, favorite_id)
            if stored is None:
                raise StoreUnavailable(
                    "Favorite could not be read back after saving",
                    detail=f"missing row {favorite_id}",
                )
            return stored

        favorite = await self._run("create favorite", _create)
        logger.info("Saved favorite %s (%s) remotely", favorite.name, favorite.id)
        return favorite

    async def update_favorite(
        self, favorite_id: str, changes: FavoriteUpdate
    ) -> Favorite:
        """Merge the explicitly set fields of ``changes`` into the record."""

        fields = changes.changes()
        validate_changes(fields)
        values = to_columns(fields)
        tbl = favorites_table(self._table_name, values)
        statement = update(tbl).where(tbl.c.id == favorite_id).values(**values)

        async def _update(session: AsyncSession) -> Favorite:
            result = await session.execute(statement)
            await session.commit()
            if result.rowcount == 0:
                raise FavoriteNotFound("Favorite not found", detail=favorite_id)
            stored = await self._fetch(session, favorite_id)
            if stored is None:
                raise FavoriteNotFound("Favorite not found", detail=favorite_id)
            return stored

        return await self._run("update favorite", _update)

    async def delete_favorite(self, favorite_id: str) -> None:
        """Remove a favorite; deleting an absent id succeeds silently."""

        tbl = favorites_table(self._table_name)
        statement = delete(tbl).where(tbl.c.id == favorite_id)

        async def _delete(session: AsyncSession) -> None:
            await session.execute(statement)
            await session.commit()

        await self._run("delete favorite", _delete)

    async def _fetch(self, session: AsyncSession, favorite_id: str) -> Favorite | None:
        tbl = table(self._table_name, column("id"))
        query = (
            select(literal_column("*"))
            .select_from(tbl)
            .where(tbl.c.id == favorite_id)
        )
        result = await session.execute(query)
        row = result.mappings().first()
        return favorite_from_row(row) if row is not None else None

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
        *,
        writes: bool = True,
    ) -> T:
        try:
            async with self._session_factory() as session:
                return await work(session)
        except FavoritesError:
            raise
        except _REMOTE_ERRORS as exc:
            message = _error_text(exc)
            error_type = classify_backend_error(message) if writes else StoreUnavailable
            if error_type is SchemaMismatch:
                logger.warning("Remote schema rejected %s: %s", operation, message)
                self._prober.invalidate()
                raise SchemaMismatch(
                    "Favorites storage does not support this record", detail=message
                ) from exc
            logger.error("Failed to %s: %s", operation, message)
            raise StoreUnavailable(
                "Favorites storage is unavailable, please try again", detail=message
            ) from exc


__all__ = [
    "FavoriteStore",
    "favorite_from_row",
    "validate_changes",
    "validate_draft",
]
