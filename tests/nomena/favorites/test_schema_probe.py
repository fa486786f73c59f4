"""Tests for learning the live favorites schema from a sample row."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from nomena.schemas.favorites import FavoriteDraft, Gender
from nomena.services.favorites.schema_probe import (
    EMPTY_CAPABILITIES,
    SchemaCapabilities,
    SchemaProber,
    build_insert_payload,
)
from tests.nomena.support.db import seed_row

_NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_probe_on_empty_table_reports_only_mandatory(full_schema) -> None:
    prober = SchemaProber(full_schema, table_name="favorites")

    capabilities = await prober.probe()

    assert capabilities == EMPTY_CAPABILITIES
    assert prober.cached is None


@pytest.mark.asyncio
async def test_probe_learns_optional_columns_from_legacy_row(legacy_schema) -> None:
    await seed_row(
        legacy_schema,
        "INSERT INTO favorites (id, name, gender, theme, created_at)"
        " VALUES ('a', 'Ava', 'girl', 'nature', '2026-01-01 10:00:00')",
    )
    prober = SchemaProber(legacy_schema, table_name="favorites")

    capabilities = await prober.probe()

    assert capabilities.optional_columns == frozenset({"gender", "theme"})
    assert capabilities.version == 1
    assert not capabilities.supports("description")


@pytest.mark.asyncio
async def test_probe_caches_until_invalidated(full_schema) -> None:
    await seed_row(
        full_schema,
        "INSERT INTO favorites (id, name, created_at) VALUES ('a', 'Ava', '2026-01-01 10:00:00')",
    )
    prober = SchemaProber(full_schema, table_name="favorites")

    first = await prober.probe()
    second = await prober.probe()
    assert first is second
    assert "description" in first.optional_columns
    assert "usedWiki" in first.optional_columns

    prober.invalidate()
    third = await prober.probe()
    assert third.version == 2


@pytest.mark.asyncio
async def test_probe_read_failure_degrades_to_empty(missing_table) -> None:
    prober = SchemaProber(missing_table, table_name="favorites")

    assert await prober.probe() == EMPTY_CAPABILITIES


def test_build_insert_payload_drops_unsupported_and_empty_fields() -> None:
    draft = FavoriteDraft(
        name="  Ava ",
        gender=Gender.GIRL,
        theme="nature",
        meaning="",
        description="Lovely",
    )
    capabilities = SchemaCapabilities(
        optional_columns=frozenset({"gender", "meaning", "user_email"}), version=1
    )

    payload = build_insert_payload(
        draft,
        capabilities,
        favorite_id="id-1",
        created_at=_NOW,
        owner="guest@example.com",
    )

    assert payload == {
        "id": "id-1",
        "name": "Ava",
        "created_at": _NOW,
        "gender": "girl",
        "user_email": "guest@example.com",
    }


def test_build_insert_payload_with_no_capabilities_is_mandatory_only() -> None:
    draft = FavoriteDraft(name="Ava", theme="nature", used_wiki=True)

    payload = build_insert_payload(
        draft,
        EMPTY_CAPABILITIES,
        favorite_id="id-1",
        created_at=_NOW,
        owner="guest@example.com",
    )

    assert set(payload) == {"id", "name", "created_at"}
