"""Regression tests for startup warmup routines."""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

import nomena.warmup as warmup
from nomena.schemas.favorites import FavoriteDraft
from nomena.services.favorites import SchemaProber
from tests.nomena.support.db import build_store, column_names


class _DummyTransaction:
    """Async context manager handing out a mocked connection."""

    def __init__(self, error: Exception | None = None) -> None:
        self.connection: AsyncMock = AsyncMock()
        self.error = error

    async def __aenter__(self) -> AsyncMock:
        if self.error is not None:
            raise self.error
        return self.connection

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any,
    ) -> bool:
        return False


@pytest.mark.asyncio
async def test_warmup_database_executes_ping(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    caplog.set_level(logging.INFO)
    dummy_txn = _DummyTransaction()
    sentinel_engine = object()
    captured: list[object] = []

    def _capture(engine: object) -> _DummyTransaction:
        captured.append(engine)
        return dummy_txn

    monkeypatch.setattr(warmup, "begin_engine_transaction", _capture)

    await warmup.warmup_database(sentinel_engine)

    assert captured == [sentinel_engine]
    executed = dummy_txn.connection.execute.await_args.args[0]
    assert str(executed).strip().upper() == "SELECT 1"
    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]


@pytest.mark.asyncio
async def test_warmup_database_failure_is_logged_not_raised(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    error = OperationalError("SELECT 1", {}, Exception("connection refused"))
    monkeypatch.setattr(warmup, "begin_engine_transaction", lambda _: _DummyTransaction(error))

    await warmup.warmup_database(object())

    assert any("Database warmup failed" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_warmup_schema_learns_from_existing_rows(full_schema) -> None:
    store = build_store(full_schema)
    await store.create_favorite(FavoriteDraft(name="Ava"))
    prober = SchemaProber(full_schema, table_name="favorites")

    await warmup.warmup_schema(prober)

    assert prober.cached is not None
    assert "description" in prober.cached.optional_columns


@pytest.mark.asyncio
async def test_warmup_all_runs_every_step(monkeypatch: pytest.MonkeyPatch) -> None:
    database = AsyncMock()
    redis = AsyncMock()
    schema = AsyncMock()
    monkeypatch.setattr(warmup, "warmup_database", database)
    monkeypatch.setattr(warmup, "warmup_redis", redis)
    monkeypatch.setattr(warmup, "warmup_schema", schema)
    engine, prober = object(), object()

    await warmup.warmup_all(engine, prober)

    database.assert_awaited_once_with(engine)
    redis.assert_awaited_once_with()
    schema.assert_awaited_once_with(prober)


@pytest.mark.asyncio
async def test_prepare_sqlite_creates_file_and_table(tmp_path) -> None:
    pytest.importorskip("aiosqlite")
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    db_path = tmp_path / "nested" / "dir" / "nomena.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    try:
        await warmup.prepare_sqlite(engine)
        columns = await column_names(async_sessionmaker(engine))
    finally:
        await engine.dispose()

    assert db_path.exists()
    assert {"id", "name", "created_at", "description", "usedWiki"} <= columns
