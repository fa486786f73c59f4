"""Structural interface shared by the remote store, local cache and controller."""

from __future__ import annotations

from typing import Protocol

from nomena.schemas.favorites import Favorite, FavoriteDraft, FavoriteUpdate


class FavoriteBackend(Protocol):
    async def list_favorites(self) -> list[Favorite]: ...

    async def create_favorite(self, draft: FavoriteDraft) -> Favorite: ...

    async def update_favorite(
        self, favorite_id: str, changes: FavoriteUpdate
    ) -> Favorite: ...

    async def delete_favorite(self, favorite_id: str) -> None: ...


__all__ = ["FavoriteBackend"]
