"""Tests for deduplicated, lazily persisted description enrichment."""

from __future__ import annotations

import asyncio

import pytest

from nomena.schemas.favorites import DescriptionStatus
from nomena.services.collaborators import CollaboratorFailure
from nomena.services.favorites import DescriptionCache, StoreUnavailable
from tests.nomena.support.fakes import FakeDescriber, FakeRemoteStore, make_favorite


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_fetch() -> None:
    favorite = make_favorite("Ava", id="a")
    store = FakeRemoteStore([favorite])
    describer = FakeDescriber("Ava is a name with a long history.")
    describer.gate = asyncio.Event()
    cache = DescriptionCache(store, describer)

    first = asyncio.create_task(cache.ensure_description(favorite))
    second = asyncio.create_task(cache.ensure_description(favorite))
    await asyncio.sleep(0)
    assert cache.is_fetching("a")
    describer.gate.set()
    results = await asyncio.gather(first, second)

    assert describer.calls == ["Ava"]
    assert store.calls == ["update"]
    assert results[0] == results[1]
    assert results[0].description == "Ava is a name with a long history."
    assert cache.status_for("a") is DescriptionStatus.SAVED
    assert not cache.is_fetching("a")


@pytest.mark.asyncio
async def test_existing_description_is_returned_untouched() -> None:
    favorite = make_favorite("Ava", id="a", poetic_description="Old verse")
    describer = FakeDescriber()
    cache = DescriptionCache(FakeRemoteStore([favorite]), describer)

    result = await cache.ensure_description(favorite)

    assert result is favorite
    assert describer.calls == []
    assert cache.status_for("a") is None


@pytest.mark.asyncio
async def test_saved_description_records_reference_usage() -> None:
    favorite = make_favorite("Ava", id="a")
    store = FakeRemoteStore([favorite])
    cache = DescriptionCache(store, FakeDescriber("Text", used_wiki=True))

    result = await cache.ensure_description(favorite)

    assert result.used_wiki is True
    assert store.favorites["a"].description == "Text"
    assert store.favorites["a"].used_wiki is True


@pytest.mark.asyncio
async def test_generation_failure_marks_failed_and_allows_retry() -> None:
    favorite = make_favorite("Ava", id="a")
    store = FakeRemoteStore([favorite])
    describer = FakeDescriber("Text")
    describer.error = CollaboratorFailure("text-generator", "timeout")
    cache = DescriptionCache(store, describer)

    failed = await cache.ensure_description(favorite)

    assert failed is favorite
    assert cache.status_for("a") is DescriptionStatus.FAILED
    assert cache.error_for("a") == "Description is not available right now"
    assert store.calls == []

    describer.error = None
    retried = await cache.ensure_description(favorite)

    assert retried.description == "Text"
    assert cache.status_for("a") is DescriptionStatus.SAVED
    assert cache.error_for("a") is None
    assert describer.calls == ["Ava", "Ava"]


@pytest.mark.asyncio
async def test_unexpected_error_propagates_and_clears_in_flight() -> None:
    favorite = make_favorite("Ava", id="a")
    describer = FakeDescriber()
    describer.error = RuntimeError("boom")
    cache = DescriptionCache(FakeRemoteStore([favorite]), describer)

    with pytest.raises(RuntimeError):
        await cache.ensure_description(favorite)

    assert cache.status_for("a") is DescriptionStatus.FAILED
    assert not cache.is_fetching("a")


@pytest.mark.asyncio
async def test_unavailable_store_keeps_text_for_display_only() -> None:
    favorite = make_favorite("Ava", id="a")
    store = FakeRemoteStore([favorite])
    store.fail_next("update", StoreUnavailable("Favorites storage is unavailable"))
    cache = DescriptionCache(store, FakeDescriber("Text"))

    result = await cache.ensure_description(favorite)

    assert result.description == "Text"
    assert store.favorites["a"].description is None
    assert cache.status_for("a") is DescriptionStatus.UNSAVED
    assert cache.error_for("a") == "Favorites storage is unavailable"


@pytest.mark.asyncio
async def test_favorite_deleted_mid_fetch_is_discarded() -> None:
    favorite = make_favorite("Ava", id="a")
    store = FakeRemoteStore([favorite])
    describer = FakeDescriber("Text")
    describer.gate = asyncio.Event()
    cache = DescriptionCache(store, describer)

    task = asyncio.create_task(cache.ensure_description(favorite))
    await asyncio.sleep(0)
    await store.delete_favorite("a")
    describer.gate.set()
    result = await task

    assert result.description == "Text"
    assert "a" not in store.favorites
    assert cache.status_for("a") is DescriptionStatus.DISCARDED


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_fetch() -> None:
    favorite = make_favorite("Ava", id="a")
    store = FakeRemoteStore([favorite])
    describer = FakeDescriber("Text")
    describer.gate = asyncio.Event()
    cache = DescriptionCache(store, describer)

    impatient = asyncio.create_task(cache.ensure_description(favorite))
    patient = asyncio.create_task(cache.ensure_description(favorite))
    await asyncio.sleep(0)
    impatient.cancel()
    await asyncio.sleep(0)
    describer.gate.set()
    result = await patient

    assert impatient.cancelled()
    assert result.description == "Text"
    assert describer.calls == ["Ava"]


def test_forget_drops_tracked_state() -> None:
    cache = DescriptionCache(FakeRemoteStore(), FakeDescriber())
    cache._status["a"] = DescriptionStatus.FAILED
    cache._errors["a"] = "nope"

    cache.forget("a")

    assert cache.status_for("a") is None
    assert cache.error_for("a") is None


@pytest.mark.asyncio
async def test_used_wiki_is_written_only_when_the_column_exists() -> None:
    favorite = make_favorite("Ava", id="a")
    store = FakeRemoteStore([favorite])
    asked: list[str] = []

    async def supports(column_name: str) -> bool:
        asked.append(column_name)
        return False

    cache = DescriptionCache(
        store, FakeDescriber("From the encyclopedia", used_wiki=True), supports=supports
    )

    stored = await cache.ensure_description(favorite)

    assert asked == ["usedWiki"]
    assert stored.description == "From the encyclopedia"
    assert stored.used_wiki is False
    assert cache.status_for("a") is DescriptionStatus.SAVED


@pytest.mark.asyncio
async def test_used_wiki_is_written_when_supported() -> None:
    favorite = make_favorite("Ava", id="a")
    store = FakeRemoteStore([favorite])

    async def supports(column_name: str) -> bool:
        return True

    cache = DescriptionCache(
        store, FakeDescriber("From the encyclopedia", used_wiki=True), supports=supports
    )

    stored = await cache.ensure_description(favorite)

    assert stored.used_wiki is True
