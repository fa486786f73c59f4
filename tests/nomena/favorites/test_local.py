"""Tests for the JSON-file favorites cache."""

from __future__ import annotations

import json

import pytest

from nomena.schemas.favorites import FavoriteDraft, FavoriteUpdate, Gender
from nomena.services.favorites import FavoriteNotFound, LocalFavoriteCache, ValidationError
from tests.nomena.support.fakes import make_favorite


@pytest.mark.asyncio
async def test_missing_file_reads_as_empty(local_cache) -> None:
    assert await local_cache.list_favorites() == []
    assert not local_cache.path.exists()


@pytest.mark.asyncio
async def test_create_persists_across_instances(local_cache) -> None:
    favorite = await local_cache.create_favorite(
        FavoriteDraft(name=" Ava ", gender=Gender.GIRL, description="Lovely")
    )

    reopened = LocalFavoriteCache(local_cache.path)
    [stored] = await reopened.list_favorites()

    assert stored == favorite
    assert stored.name == "Ava"
    assert stored.owner == "guest@example.com"


@pytest.mark.asyncio
async def test_file_holds_a_single_json_list_with_column_names(local_cache) -> None:
    await local_cache.create_favorite(FavoriteDraft(name="Ava", used_wiki=True))

    records = json.loads(local_cache.path.read_text(encoding="utf-8"))

    assert isinstance(records, list)
    assert records[0]["usedWiki"] is True
    assert records[0]["user_email"] == "guest@example.com"
    assert not local_cache.path.with_name("guest.json.tmp").exists()


@pytest.mark.asyncio
async def test_create_requires_a_name(local_cache) -> None:
    with pytest.raises(ValidationError):
        await local_cache.create_favorite(FavoriteDraft(name=" "))


@pytest.mark.asyncio
async def test_list_is_newest_first(local_cache) -> None:
    await local_cache.merge(
        [make_favorite("Old", minutes=1), make_favorite("New", minutes=5)]
    )

    names = [favorite.name for favorite in await local_cache.list_favorites()]

    assert names == ["New", "Old"]


@pytest.mark.asyncio
async def test_update_merges_fields(local_cache) -> None:
    favorite = await local_cache.create_favorite(FavoriteDraft(name="Ava", theme="nature"))

    updated = await local_cache.update_favorite(
        favorite.id, FavoriteUpdate(description="Text", used_wiki=True)
    )

    assert updated.theme == "nature"
    assert updated.description == "Text"
    assert updated.used_wiki is True
    assert updated.created_at == favorite.created_at


@pytest.mark.asyncio
async def test_update_absent_id_raises_not_found(local_cache) -> None:
    with pytest.raises(FavoriteNotFound):
        await local_cache.update_favorite("missing", FavoriteUpdate(description="x"))


@pytest.mark.asyncio
async def test_delete_is_idempotent(local_cache) -> None:
    favorite = await local_cache.create_favorite(FavoriteDraft(name="Ava"))

    await local_cache.delete_favorite(favorite.id)
    await local_cache.delete_favorite(favorite.id)

    assert await LocalFavoriteCache(local_cache.path).list_favorites() == []


@pytest.mark.asyncio
async def test_merge_lets_incoming_copy_win(local_cache) -> None:
    original = make_favorite("Ava", id="a")
    await local_cache.merge([original])

    await local_cache.merge([original.model_copy(update={"description": "Newer"})])

    [stored] = await local_cache.list_favorites()
    assert stored.description == "Newer"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    ["{not json", '{"favorites": []}', '[{"id": "x"}]'],
)
async def test_unreadable_content_starts_empty(tmp_path, content) -> None:
    path = tmp_path / "broken.json"
    path.write_text(content, encoding="utf-8")

    cache = LocalFavoriteCache(path)

    assert await cache.list_favorites() == []


@pytest.mark.asyncio
async def test_unreadable_records_are_skipped_not_fatal(tmp_path) -> None:
    good = make_favorite("Ava", id="a").to_record()
    path = tmp_path / "mixed.json"
    path.write_text(json.dumps([{"name": ""}, good]), encoding="utf-8")

    cache = LocalFavoriteCache(path)

    assert [favorite.id for favorite in await cache.list_favorites()] == ["a"]
