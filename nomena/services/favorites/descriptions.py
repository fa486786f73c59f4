"""Lazy enrichment of favorites with long-form descriptions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from nomena.schemas.favorites import DescriptionStatus, Favorite, FavoriteUpdate
from nomena.schemas.names import NameDescription
from nomena.services.collaborators.errors import CollaboratorFailure
from nomena.services.favorites.columns import FIELD_TO_COLUMN
from nomena.services.favorites.errors import FavoriteNotFound, StoreUnavailable
from nomena.services.favorites.protocols import FavoriteBackend

logger = logging.getLogger(__name__)

USED_WIKI_COLUMN = FIELD_TO_COLUMN["used_wiki"]


class NameDescriber(Protocol):
    async def describe(self, name: str) -> NameDescription: ...


class DescriptionCache:
    """Fetch each favorite's description at most once at a time.

    Concurrent :meth:`ensure_description` calls for the same id await one
    shared task. The in-flight entry is cleared once that task finishes,
    whatever the outcome, so a later call can try again.

    Only ``description`` is required of the store. ``usedWiki`` is written
    when ``supports`` reports the column exists, or always without one.
    """

    def __init__(
        self,
        store: FavoriteBackend,
        describer: NameDescriber,
        *,
        supports: Callable[[str], Awaitable[bool]] | None = None,
    ) -> None:
        self._store = store
        self._describer = describer
        self._supports = supports
        self._inflight: dict[str, asyncio.Task[Favorite]] = {}
        self._status: dict[str, DescriptionStatus] = {}
        self._errors: dict[str, str] = {}

    def status_for(self, favorite_id: str) -> DescriptionStatus | None:
        return self._status.get(favorite_id)

    def error_for(self, favorite_id: str) -> str | None:
        return self._errors.get(favorite_id)

    def is_fetching(self, favorite_id: str) -> bool:
        return favorite_id in self._inflight

    def forget(self, favorite_id: str) -> None:
        """Drop tracked state for a favorite that no longer exists."""

        self._status.pop(favorite_id, None)
        self._errors.pop(favorite_id, None)

    async def ensure_description(self, favorite: Favorite) -> Favorite:
        if favorite.has_description:
            return favorite

        task = self._inflight.get(favorite.id)
        if task is None:
            task = asyncio.create_task(self._enrich(favorite))
            self._inflight[favorite.id] = task
            task.add_done_callback(
                lambda done, favorite_id=favorite.id: self._clear(favorite_id, done)
            )
        # Cancelling one waiter leaves the shared fetch running.
        return await asyncio.shield(task)

    def _clear(self, favorite_id: str, task: asyncio.Task[Favorite]) -> None:
        if self._inflight.get(favorite_id) is task:
            del self._inflight[favorite_id]

    async def _enrich(self, favorite: Favorite) -> Favorite:
        favorite_id = favorite.id
        self._status[favorite_id] = DescriptionStatus.PENDING
        self._errors.pop(favorite_id, None)

        try:
            result = await self._describer.describe(favorite.name)
        except CollaboratorFailure as exc:
            logger.warning("Could not describe favorite %s: %s", favorite.name, exc)
            self._status[favorite_id] = DescriptionStatus.FAILED
            self._errors[favorite_id] = "Description is not available right now"
            return favorite
        except Exception:
            self._status[favorite_id] = DescriptionStatus.FAILED
            raise

        enriched = favorite.model_copy(
            update={"description": result.description, "used_wiki": result.used_wiki}
        )
        if self._supports is None or await self._supports(USED_WIKI_COLUMN):
            changes = FavoriteUpdate(
                description=result.description, used_wiki=result.used_wiki
            )
        else:
            changes = FavoriteUpdate(description=result.description)
        try:
            stored = await self._store.update_favorite(favorite_id, changes)
        except FavoriteNotFound:
            logger.info("Favorite %s disappeared while its description was fetched", favorite_id)
            self._status[favorite_id] = DescriptionStatus.DISCARDED
            return enriched
        except StoreUnavailable as exc:
            logger.warning("Description for %s generated but not saved: %s", favorite_id, exc.detail)
            self._status[favorite_id] = DescriptionStatus.UNSAVED
            self._errors[favorite_id] = exc.message
            return enriched

        self._status[favorite_id] = DescriptionStatus.SAVED
        return stored


__all__ = ["DescriptionCache", "NameDescriber"]
