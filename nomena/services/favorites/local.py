"""JSON-file favorites store used once a session falls back from the remote."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from nomena.schemas.favorites import Favorite, FavoriteDraft, FavoriteUpdate
from nomena.services.favorites.errors import FavoriteNotFound
from nomena.services.favorites.persistence import validate_changes, validate_draft
from nomena.settings import DEFAULT_GUEST_OWNER

logger = logging.getLogger(__name__)


class LocalFavoriteCache:
    """Keep one session's favorites in a single serialized JSON list.

    The file is read into memory on first use and rewritten entirely on every
    mutation (temporary file plus :func:`os.replace`). All methods are
    coroutines to share the remote store's interface, but none of them
    suspends.
    """

    def __init__(self, path: Path | str, *, owner: str = DEFAULT_GUEST_OWNER) -> None:
        self._path = Path(path)
        self._owner = owner
        self._favorites: dict[str, Favorite] | None = None

    @property
    def path(self) -> Path:
        return self._path

    async def list_favorites(self) -> list[Favorite]:
        return self._sorted(self._load().values())

    async def create_favorite(self, draft: FavoriteDraft) -> Favorite:
        validate_draft(draft)
        data = draft.model_dump(exclude={"id", "name", "owner"})
        favorite = Favorite(
            **data,
            id=draft.id or str(uuid4()),
            name=draft.name.strip(),
            created_at=datetime.now(timezone.utc),
            owner=draft.owner or self._owner,
        )
        favorites = self._load()
        favorites[favorite.id] = favorite
        self._save()
        logger.info("Saved favorite %s (%s) locally", favorite.name, favorite.id)
        return favorite

    async def update_favorite(
        self, favorite_id: str, changes: FavoriteUpdate
    ) -> Favorite:
        fields = changes.changes()
        validate_changes(fields)
        favorites = self._load()
        current = favorites.get(favorite_id)
        if current is None:
            raise FavoriteNotFound("Favorite not found", detail=favorite_id)

        merged = Favorite.model_validate({**current.model_dump(), **fields})
        favorites[favorite_id] = merged
        self._save()
        return merged

    async def delete_favorite(self, favorite_id: str) -> None:
        favorites = self._load()
        if favorites.pop(favorite_id, None) is not None:
            self._save()

    async def merge(self, favorites: Iterable[Favorite]) -> None:
        """Union ``favorites`` into the collection; incoming copies win."""

        stored = self._load()
        changed = False
        for favorite in favorites:
            stored[favorite.id] = favorite
            changed = True
        if changed:
            self._save()

    def _load(self) -> dict[str, Favorite]:
        if self._favorites is not None:
            return self._favorites

        self._favorites = {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return self._favorites
        except OSError as exc:
            logger.warning("Could not read local favorites %s: %s", self._path, exc)
            return self._favorites

        try:
            records: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Local favorites %s are corrupt; starting empty: %s", self._path, exc)
            return self._favorites
        if not isinstance(records, list):
            logger.warning("Local favorites %s are not a list; starting empty", self._path)
            return self._favorites

        for record in records:
            try:
                favorite = Favorite.model_validate(record)
            except PydanticValidationError as exc:
                logger.warning("Skipping unreadable local favorite: %s", exc)
                continue
            self._favorites[favorite.id] = favorite
        return self._favorites

    def _save(self) -> None:
        records = [favorite.to_record() for favorite in self._sorted(self._load().values())]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        tmp_path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)

    @staticmethod
    def _sorted(favorites: Iterable[Favorite]) -> list[Favorite]:
        return sorted(favorites, key=lambda favorite: favorite.created_at, reverse=True)


__all__ = ["LocalFavoriteCache"]
