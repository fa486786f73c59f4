"""Shared fixtures: SQLite favorites tables in different schema generations."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from nomena.db.models import Base
from nomena.services.favorites import LocalFavoriteCache

# The first deployed schema, before any enrichment column existed.
LEGACY_TABLE_DDL = """
CREATE TABLE favorites (
    id VARCHAR(36) PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    gender VARCHAR(16),
    theme VARCHAR(255),
    created_at TIMESTAMP NOT NULL
)
"""

# Enrichment text was added before the usedWiki flag existed.
DESCRIBED_TABLE_DDL = """
CREATE TABLE favorites (
    id VARCHAR(36) PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    gender VARCHAR(16),
    theme VARCHAR(255),
    created_at TIMESTAMP NOT NULL,
    description TEXT
)
"""

# A drifted schema with a required column this service never writes.
STRICT_TABLE_DDL = """
CREATE TABLE favorites (
    id VARCHAR(36) PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    gender VARCHAR(16),
    theme VARCHAR(255),
    created_at TIMESTAMP NOT NULL,
    user_id VARCHAR(64) NOT NULL
)
"""


async def _engine(path: Path) -> AsyncEngine:
    pytest.importorskip("aiosqlite")
    return create_async_engine(f"sqlite+aiosqlite:///{path}", future=True)


@pytest_asyncio.fixture
async def full_schema(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session factory over a database created from the current ORM model."""

    engine = await _engine(tmp_path / "full.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def legacy_schema(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = await _engine(tmp_path / "legacy.db")
    async with engine.begin() as conn:
        await conn.execute(text(LEGACY_TABLE_DDL))
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def described_schema(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = await _engine(tmp_path / "described.db")
    async with engine.begin() as conn:
        await conn.execute(text(DESCRIBED_TABLE_DDL))
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def strict_schema(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = await _engine(tmp_path / "strict.db")
    async with engine.begin() as conn:
        await conn.execute(text(STRICT_TABLE_DDL))
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def missing_table(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = await _engine(tmp_path / "empty.db")
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def local_cache(tmp_path: Path) -> LocalFavoriteCache:
    return LocalFavoriteCache(tmp_path / "local" / "guest.json")
