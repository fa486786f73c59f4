"""Helpers for tests that talk to a real SQLite favorites table."""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nomena.services.favorites import FavoriteStore, SchemaProber


def build_store(session_factory: async_sessionmaker[AsyncSession]) -> FavoriteStore:
    prober = SchemaProber(session_factory, table_name="favorites")
    return FavoriteStore(session_factory, prober, table_name="favorites")


async def seed_row(
    session_factory: async_sessionmaker[AsyncSession], sql: str, **params: object
) -> None:
    async with session_factory() as session:
        await session.execute(text(sql), params)
        await session.commit()


async def column_names(session_factory: async_sessionmaker[AsyncSession]) -> set[str]:
    async with session_factory() as session:
        result = await session.execute(text("PRAGMA table_info(favorites)"))
        return {row[1] for row in result}
