from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from nomena.settings import POSTGRES_ASYNC_PREFIX, get_settings

logger = logging.getLogger(__name__)


def _validate_database_url(database_url: str) -> str:
    """Perform lightweight structural checks on the resolved database URL.

    SQLite URLs are accepted as-is. PostgreSQL URLs must carry a host and a
    database name so misconfigured deployments fail at startup with a clear
    message rather than on the first favorites request.
    """

    normalized_url = database_url.strip()
    if not normalized_url:
        raise RuntimeError(
            "DATABASE_URL is set but empty. Provide a valid connection string."
        )

    if normalized_url.startswith("sqlite"):
        return normalized_url

    parts = urlsplit(normalized_url)
    if not parts.hostname or not parts.path:
        raise RuntimeError(
            "DATABASE_URL appears malformed. Verify the host and database name are present."
        )

    return normalized_url


def get_database_url() -> str:
    """Return the async SQLAlchemy URL for the favorites database."""

    return _validate_database_url(get_settings().resolved_database_url)


def get_database_type() -> str:
    """Return ``postgresql`` or ``sqlite`` for the configured database."""

    url = get_database_url()
    if url.startswith(POSTGRES_ASYNC_PREFIX):
        return "postgresql"
    return "sqlite"


def create_engine(url: str | None = None) -> AsyncEngine:
    """Create the async SQLAlchemy engine.

    PostgreSQL engines keep a small warm pool with pre-ping enabled because the
    hosted database may drop idle connections. SQLite engines use the dialect
    defaults.
    """

    url = url or get_database_url()
    if url.startswith(POSTGRES_ASYNC_PREFIX):
        return create_async_engine(
            url,
            future=True,
            echo=False,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,  # Validate connections before use
            pool_recycle=1800,  # Recycle connections every 30 min
            pool_timeout=30,
        )

    return create_async_engine(url, future=True, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@asynccontextmanager
async def begin_engine_transaction(engine: AsyncEngine) -> AsyncIterator[Any]:
    """Yield a connection from ``engine.begin()`` with mock-friendly support."""

    begin_result = engine.begin()
    if asyncio.iscoroutine(begin_result):
        begin_context = await begin_result
    else:
        begin_context = begin_result

    async with begin_context as connection:
        yield connection


# Process-wide engine/session factory shared by every favorites session
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global engine instance."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create a session factory bound to the shared engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the shared engine so pooled connections close on shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
