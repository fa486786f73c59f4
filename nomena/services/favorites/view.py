"""In-memory favorites list with optimistic add/remove and reconciliation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from nomena.schemas.favorites import Favorite, FavoriteDraft
from nomena.services.favorites.errors import (
    FavoriteNotFound,
    FavoritesError,
    StoreUnavailable,
)
from nomena.services.favorites.persistence import validate_draft
from nomena.services.favorites.protocols import FavoriteBackend

logger = logging.getLogger(__name__)


class OptimisticView:
    """The ordered list a user sees, newest first.

    Mutations show up immediately and are reconciled with the backend result
    afterwards:

    * ``add`` inserts a placeholder, then swaps in the stored record or drops
      the placeholder and keeps the draft for :meth:`retry`.
    * ``remove`` drops the entry, then deletes; a failed delete re-reads the
      list instead of re-inserting the entry.
    * ``apply`` is the only way enrichment results reach the list and never
      brings back an entry that was removed.

    An entry removed while its create is still pending is recorded as
    dismissed; once the create lands the stored record is deleted again.
    """

    def __init__(self, backend: FavoriteBackend) -> None:
        self._backend = backend
        self._entries: list[Favorite] = []
        self._pending: set[str] = set()
        self._failed: dict[str, FavoriteDraft] = {}
        self._dismissed: set[str] = set()

    @property
    def entries(self) -> list[Favorite]:
        return list(self._entries)

    @property
    def failed(self) -> dict[str, FavoriteDraft]:
        """Drafts whose save failed, keyed by their client-side id."""

        return dict(self._failed)

    def is_pending(self, favorite_id: str) -> bool:
        return favorite_id in self._pending

    def get(self, favorite_id: str) -> Favorite | None:
        for entry in self._entries:
            if entry.id == favorite_id:
                return entry
        return None

    async def refresh(self) -> list[Favorite]:
        try:
            favorites = await self._backend.list_favorites()
        except StoreUnavailable as exc:
            logger.warning("Favorites unavailable, showing an empty list: %s", exc.detail)
            favorites = []

        placeholders = [entry for entry in self._entries if entry.id in self._pending]
        visible = [
            favorite
            for favorite in favorites
            if favorite.id not in self._dismissed and favorite.id not in self._pending
        ]
        self._entries = self._sorted([*placeholders, *visible])
        return self.entries

    async def add(self, draft: FavoriteDraft) -> Favorite | None:
        """Save ``draft`` optimistically.

        Returns the stored favorite, or ``None`` when the entry was removed
        before the save completed. Backend errors propagate after the
        placeholder is withdrawn.
        """

        validate_draft(draft)
        favorite_id = draft.id or str(uuid4())
        draft = draft.model_copy(update={"id": favorite_id})
        placeholder = Favorite(
            **draft.model_dump(exclude={"id", "name", "owner"}),
            id=favorite_id,
            name=draft.name.strip(),
            created_at=datetime.now(timezone.utc),
            owner=draft.owner,
        )

        self._failed.pop(favorite_id, None)
        self._drop(favorite_id)
        self._entries.insert(0, placeholder)
        self._pending.add(favorite_id)

        try:
            stored = await self._backend.create_favorite(draft)
        except Exception:
            self._pending.discard(favorite_id)
            self._drop(favorite_id)
            if favorite_id in self._dismissed:
                self._dismissed.discard(favorite_id)
            else:
                self._failed[favorite_id] = draft
            raise

        self._pending.discard(favorite_id)
        if favorite_id in self._dismissed:
            await self._discard_stored(stored.id)
            return None

        self._replace(favorite_id, stored)
        return stored

    async def retry(self, favorite_id: str) -> Favorite | None:
        draft = self._failed.get(favorite_id)
        if draft is None:
            raise FavoriteNotFound("No failed favorite to retry", detail=favorite_id)
        return await self.add(draft)

    async def remove(self, favorite_id: str) -> None:
        if self._failed.pop(favorite_id, None) is not None:
            return

        self._drop(favorite_id)
        if favorite_id in self._pending:
            self._dismissed.add(favorite_id)
            return

        try:
            await self._backend.delete_favorite(favorite_id)
        except FavoritesError as exc:
            logger.warning("Delete of %s failed, re-reading favorites: %s", favorite_id, exc.message)
            await self.refresh()
            raise

    def apply(self, favorite: Favorite) -> bool:
        """Replace the entry with ``favorite``'s id; absent ids are ignored."""

        if favorite.id in self._dismissed:
            return False
        return self._replace(favorite.id, favorite)

    async def _discard_stored(self, favorite_id: str) -> None:
        try:
            await self._backend.delete_favorite(favorite_id)
        except FavoritesError as exc:
            # Stays dismissed so a later refresh keeps hiding it.
            logger.warning("Could not delete dismissed favorite %s: %s", favorite_id, exc.message)
            return
        self._dismissed.discard(favorite_id)

    def _replace(self, favorite_id: str, favorite: Favorite) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.id == favorite_id:
                self._entries[index] = favorite
                return True
        return False

    def _drop(self, favorite_id: str) -> None:
        self._entries = [entry for entry in self._entries if entry.id != favorite_id]

    @staticmethod
    def _sorted(favorites: list[Favorite]) -> list[Favorite]:
        return sorted(favorites, key=lambda favorite: favorite.created_at, reverse=True)


__all__ = ["OptimisticView"]
