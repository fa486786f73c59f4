"""Startup warmup so the first favorites request does not pay connection costs."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from nomena.db.connection import begin_engine_transaction
from nomena.db.models import Base
from nomena.services.favorites import SchemaProber

logger = logging.getLogger(__name__)


async def prepare_sqlite(engine: AsyncEngine) -> None:
    """Create the SQLite file and any missing tables from the ORM metadata.

    PostgreSQL deployments are managed by Alembic migrations instead.
    """

    database = engine.url.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)

    async with begin_engine_transaction(engine) as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("SQLite schema ready at %s", database or ":memory:")


async def warmup_database(engine: AsyncEngine) -> None:
    """Open one pooled connection with ``SELECT 1``; failures are only logged."""

    start = time.time()
    try:
        async with begin_engine_transaction(engine) as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database warmup failed: %s", exc)
        return
    elapsed = (time.time() - start) * 1000
    logger.info("Database connection warmed up (%.0fms)", elapsed)


async def warmup_redis() -> None:
    from nomena.cache import get_redis

    start = time.time()
    redis = await get_redis()
    if redis is None:
        logger.info("Redis warmup skipped (connection unavailable)")
        return
    elapsed = (time.time() - start) * 1000
    logger.info("Redis connection warmed up (%.0fms)", elapsed)


async def warmup_schema(prober: SchemaProber) -> None:
    """Learn the favorites schema before the first save needs it."""

    capabilities = await prober.probe()
    if capabilities.version == 0:
        logger.info("Favorites table is empty or unreadable; only mandatory columns will be written")


async def warmup_all(engine: AsyncEngine, prober: SchemaProber) -> None:
    start = time.time()
    await warmup_database(engine)
    await warmup_redis()
    await warmup_schema(prober)
    total_elapsed = (time.time() - start) * 1000
    logger.info("Warmup complete (%.0fms)", total_elapsed)


__all__ = [
    "prepare_sqlite",
    "warmup_all",
    "warmup_database",
    "warmup_redis",
    "warmup_schema",
]
