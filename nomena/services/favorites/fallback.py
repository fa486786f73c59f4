"""Session-scoped switch from the remote favorites store to the local cache."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from nomena.schemas.favorites import (
    Favorite,
    FavoriteDraft,
    FavoriteUpdate,
    PersistenceMode,
)
from nomena.services.favorites.errors import SchemaMismatch
from nomena.services.favorites.local import LocalFavoriteCache
from nomena.services.favorites.protocols import FavoriteBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

FallbackCallback = Callable[[SchemaMismatch], None]


class FallbackController:
    """Route favorites operations to the remote store until its schema balks.

    The controller starts in :attr:`PersistenceMode.REMOTE`. The first
    :class:`SchemaMismatch` raised by a remote write latches it into
    :attr:`PersistenceMode.LOCAL` for the rest of the session: every favorite
    seen so far is copied into the local cache, the failed operation is
    replayed there, and the remote store is never called again. Other errors
    propagate unchanged.
    """

    def __init__(
        self,
        remote: FavoriteBackend,
        local: LocalFavoriteCache,
        *,
        on_fallback: FallbackCallback | None = None,
    ) -> None:
        self._remote = remote
        self._local = local
        self._on_fallback = on_fallback
        self._mode = PersistenceMode.REMOTE
        self._known: dict[str, Favorite] = {}

    @property
    def mode(self) -> PersistenceMode:
        return self._mode

    @property
    def is_local(self) -> bool:
        return self._mode is PersistenceMode.LOCAL

    async def list_favorites(self) -> list[Favorite]:
        if self.is_local:
            return await self._local.list_favorites()

        favorites = await self._remote.list_favorites()
        if self.is_local:
            # Latched while the read was in flight.
            return await self._local.list_favorites()
        self._known = {favorite.id: favorite for favorite in favorites}
        return favorites

    async def create_favorite(self, draft: FavoriteDraft) -> Favorite:
        if self.is_local:
            return await self._local.create_favorite(draft)

        favorite = await self._remote_write(
            lambda: self._remote.create_favorite(draft),
            lambda: self._local.create_favorite(draft),
        )
        await self._remember(favorite)
        return favorite

    async def update_favorite(
        self, favorite_id: str, changes: FavoriteUpdate
    ) -> Favorite:
        if self.is_local:
            return await self._local.update_favorite(favorite_id, changes)

        favorite = await self._remote_write(
            lambda: self._remote.update_favorite(favorite_id, changes),
            lambda: self._local.update_favorite(favorite_id, changes),
        )
        await self._remember(favorite)
        return favorite

    async def delete_favorite(self, favorite_id: str) -> None:
        if self.is_local:
            await self._local.delete_favorite(favorite_id)
            return

        await self._remote_write(
            lambda: self._remote.delete_favorite(favorite_id),
            lambda: self._local.delete_favorite(favorite_id),
        )
        self._known.pop(favorite_id, None)
        if self.is_local:
            await self._local.delete_favorite(favorite_id)

    async def _remote_write(
        self,
        remote_call: Callable[[], Awaitable[T]],
        local_call: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await remote_call()
        except SchemaMismatch as exc:
            await self._switch_to_local(exc)
            return await local_call()

    async def _remember(self, favorite: Favorite) -> None:
        if self.is_local:
            # A remote write that completed after the latch closed.
            await self._local.merge([favorite])
        else:
            self._known[favorite.id] = favorite

    async def _switch_to_local(self, exc: SchemaMismatch) -> None:
        if self.is_local:
            return

        self._mode = PersistenceMode.LOCAL
        logger.warning(
            "Remote favorites schema rejected a write; session now stores favorites locally at %s (%s)",
            self._local.path,
            exc.detail or exc.message,
        )
        known = list(self._known.values())
        self._known.clear()
        await self._local.merge(known)
        if self._on_fallback is not None:
            self._on_fallback(exc)


__all__ = ["FallbackCallback", "FallbackController"]
