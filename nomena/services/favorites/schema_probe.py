"""Discover which optional favorites columns the deployed schema supports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import literal_column, select, table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nomena.schemas.favorites import FavoriteDraft
from nomena.services.favorites.columns import OPTIONAL_COLUMNS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaCapabilities:
    """Versioned descriptor of the optional columns a write may include.

    ``version`` increases every time the prober learns the schema from a live
    record; ``0`` means nothing is known and only mandatory columns are safe.
    """

    optional_columns: frozenset[str] = frozenset()
    version: int = 0

    def supports(self, column_name: str) -> bool:
        return column_name in self.optional_columns


EMPTY_CAPABILITIES = SchemaCapabilities()


class SchemaProber:
    """Read one sample favorite to learn the live shape of the table.

    A descriptor learned from a real record is cached until
    :meth:`invalidate` is called. Empty tables and failed reads yield
    :data:`EMPTY_CAPABILITIES` without caching, so the next write probes again.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        table_name: str,
    ) -> None:
        self._session_factory = session_factory
        self._table_name = table_name
        self._capabilities: SchemaCapabilities | None = None
        self._version = 0

    @property
    def cached(self) -> SchemaCapabilities | None:
        return self._capabilities

    async def probe(self) -> SchemaCapabilities:
        if self._capabilities is not None:
            return self._capabilities

        try:
            sample = await self._read_sample()
        except SQLAlchemyError as exc:
            logger.warning(
                "Schema probe on %s failed; assuming mandatory columns only: %s",
                self._table_name,
                exc,
            )
            return EMPTY_CAPABILITIES

        if sample is None:
            logger.debug("Schema probe found no rows in %s", self._table_name)
            return EMPTY_CAPABILITIES

        self._version += 1
        self._capabilities = SchemaCapabilities(
            optional_columns=frozenset(sample) & OPTIONAL_COLUMNS,
            version=self._version,
        )
        logger.info(
            "Learned favorites schema v%s: %s",
            self._capabilities.version,
            ", ".join(sorted(self._capabilities.optional_columns)) or "<none>",
        )
        return self._capabilities

    def invalidate(self) -> None:
        """Forget the cached descriptor; the next probe reads a fresh sample."""

        self._capabilities = None

    async def _read_sample(self) -> set[str] | None:
        query = select(literal_column("*")).select_from(table(self._table_name)).limit(1)
        async with self._session_factory() as session:
            result = await session.execute(query)
            row = result.mappings().first()
        if row is None:
            return None
        return set(row.keys())


def build_insert_payload(
    draft: FavoriteDraft,
    capabilities: SchemaCapabilities,
    *,
    favorite_id: str,
    created_at: datetime,
    owner: str,
) -> dict[str, Any]:
    """Return the column mapping for an insert constrained to ``capabilities``."""

    payload: dict[str, Any] = {
        "id": favorite_id,
        "name": draft.name.strip(),
        "created_at": created_at,
    }
    optional: dict[str, Any] = {
        "user_email": draft.owner or owner,
        "gender": draft.gender.value if draft.gender else None,
        "theme": draft.theme,
        "meaning": draft.meaning,
        "origin": draft.origin,
        "description": draft.description,
        "informativeDescription": draft.informative_description,
        "poeticDescription": draft.poetic_description,
        "history": draft.history,
        "usedWiki": draft.used_wiki,
    }

    dropped: list[str] = []
    for column_name, value in optional.items():
        if value is None or value == "":
            continue
        if capabilities.supports(column_name):
            payload[column_name] = value
        else:
            dropped.append(column_name)

    if dropped:
        logger.debug(
            "Dropping attributes unsupported by schema v%s: %s",
            capabilities.version,
            ", ".join(dropped),
        )
    return payload


__all__ = [
    "EMPTY_CAPABILITIES",
    "SchemaCapabilities",
    "SchemaProber",
    "build_insert_payload",
]
