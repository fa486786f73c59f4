"""Per-session orchestration behind the favorites API endpoints.

Collaborators wired by :class:`FavoritesSessionRegistry` for every session:

* :class:`FallbackController` – routes reads and writes to the remote
  :class:`FavoriteStore` until a schema mismatch latches the session onto its
  :class:`LocalFavoriteCache`.
* :class:`OptimisticView` – the list the session sees, with optimistic
  add/remove and retry of failed saves.
* :class:`DescriptionCache` – lazy, deduplicated description enrichment.

The remote session factory, the schema prober and the remote store are shared
across sessions; everything above is session-scoped.
"""

from __future__ import annotations

import hashlib
import logging
from collections import OrderedDict
from collections.abc import Awaitable
from pathlib import Path
from uuid import uuid4

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nomena.schemas.favorites import (
    CertificateData,
    DescriptionResult,
    DescriptionStatus,
    FailedFavorite,
    Favorite,
    FavoriteDraft,
    FavoriteListResponse,
    FavoriteUpdate,
    PersistenceMode,
    RenderedFavorite,
)
from nomena.services.favorites import (
    DescriptionCache,
    FallbackController,
    FavoriteNotFound,
    FavoritesError,
    FavoriteStore,
    LocalFavoriteCache,
    OptimisticView,
    SchemaProber,
)
from nomena.services.favorites.descriptions import NameDescriber
from nomena.services.favorites.presentation import certificate_data, render_favorite
from nomena.settings import DEFAULT_GUEST_OWNER, DEFAULT_MAX_FAVORITES_SESSIONS

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "guest"


class FavoritesService:
    """Coordinate one session's controller, view and description cache."""

    def __init__(
        self,
        *,
        controller: FallbackController,
        view: OptimisticView,
        descriptions: DescriptionCache,
    ) -> None:
        self._controller = controller
        self._view = view
        self._descriptions = descriptions

    @property
    def mode(self) -> PersistenceMode:
        return self._controller.mode

    async def list_favorites(self, *, refresh: bool = True) -> FavoriteListResponse:
        entries = await self._view.refresh() if refresh else self._view.entries
        favorites = [self._render(entry) for entry in entries]
        failed = [
            FailedFavorite(
                id=favorite_id, name=draft.name, gender=draft.gender, theme=draft.theme
            )
            for favorite_id, draft in self._view.failed.items()
        ]
        return FavoriteListResponse(
            mode=self.mode, total=len(favorites), favorites=favorites, failed=failed
        )

    async def add_favorite(self, draft: FavoriteDraft) -> RenderedFavorite:
        if not draft.id:
            draft = draft.model_copy(update={"id": str(uuid4())})
        stored = await self._save(draft.id, self._view.add(draft))
        return self._render_added(stored, draft)

    async def retry_favorite(self, favorite_id: str) -> RenderedFavorite:
        draft = self._view.failed.get(favorite_id)
        stored = await self._save(favorite_id, self._view.retry(favorite_id))
        return self._render_added(stored, draft)

    async def _save(
        self, favorite_id: str, attempt: Awaitable[Favorite | None]
    ) -> Favorite | None:
        try:
            return await attempt
        except FavoritesError as exc:
            if favorite_id in self._view.failed:
                exc.favorite_id = favorite_id
            raise

    async def update_favorite(
        self, favorite_id: str, changes: FavoriteUpdate
    ) -> RenderedFavorite:
        favorite = await self._controller.update_favorite(favorite_id, changes)
        self._view.apply(favorite)
        return self._render(favorite)

    async def remove_favorite(self, favorite_id: str) -> None:
        await self._view.remove(favorite_id)
        self._descriptions.forget(favorite_id)

    async def ensure_description(self, favorite_id: str) -> DescriptionResult:
        favorite = await self._find(favorite_id)
        enriched = await self._descriptions.ensure_description(favorite)
        status = self._descriptions.status_for(favorite_id)
        if enriched.has_description and status is None:
            status = DescriptionStatus.SAVED
        if status is not DescriptionStatus.DISCARDED:
            self._view.apply(enriched)
        return DescriptionResult(
            favorite=render_favorite(enriched, status=status),
            status=status or DescriptionStatus.FAILED,
            error=self._descriptions.error_for(favorite_id),
        )

    async def certificate(self, favorite_id: str) -> CertificateData:
        return certificate_data(await self._find(favorite_id))

    async def _find(self, favorite_id: str) -> Favorite:
        favorite = self._view.get(favorite_id)
        if favorite is None:
            await self._view.refresh()
            favorite = self._view.get(favorite_id)
        if favorite is None:
            raise FavoriteNotFound("Favorite not found", detail=favorite_id)
        return favorite

    def _render(self, favorite: Favorite) -> RenderedFavorite:
        return render_favorite(
            favorite,
            pending=self._view.is_pending(favorite.id),
            status=self._descriptions.status_for(favorite.id),
        )

    def _render_added(
        self, stored: Favorite | None, draft: FavoriteDraft | None
    ) -> RenderedFavorite:
        if stored is None:
            raise FavoriteNotFound(
                "Favorite was removed before it was saved",
                detail=draft.id if draft is not None else None,
            )
        return self._render(stored)


def normalize_session_id(session_id: str) -> str:
    return session_id.strip() or DEFAULT_SESSION_ID


def _session_file_name(session_id: str) -> str:
    digest = hashlib.sha256(normalize_session_id(session_id).encode("utf-8"))
    return f"{digest.hexdigest()}.json"


class FavoritesSessionRegistry:
    """Lazily build one :class:`FavoritesService` per session id.

    At most ``max_sessions`` services are kept; the least recently used one is
    dropped first. Its local file stays on disk.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        describer: NameDescriber,
        table_name: str,
        local_dir: Path | str,
        owner: str = DEFAULT_GUEST_OWNER,
        max_sessions: int = DEFAULT_MAX_FAVORITES_SESSIONS,
    ) -> None:
        self._describer = describer
        self._local_dir = Path(local_dir)
        self._owner = owner
        self._max_sessions = max(1, max_sessions)
        self._prober = SchemaProber(session_factory, table_name=table_name)
        self._store = FavoriteStore(
            session_factory, self._prober, table_name=table_name, owner=owner
        )
        self._services: OrderedDict[str, FavoritesService] = OrderedDict()

    @property
    def prober(self) -> SchemaProber:
        return self._prober

    def __len__(self) -> int:
        return len(self._services)

    def local_path(self, session_id: str) -> Path:
        return self._local_dir / _session_file_name(session_id)

    def get(self, session_id: str = DEFAULT_SESSION_ID) -> FavoritesService:
        session_id = normalize_session_id(session_id)
        service = self._services.get(session_id)
        if service is not None:
            self._services.move_to_end(session_id)
            return service

        service = self._build(session_id)
        self._services[session_id] = service
        while len(self._services) > self._max_sessions:
            evicted, _ = self._services.popitem(last=False)
            logger.debug("Evicted idle favorites session %s", evicted)
        return service

    def _build(self, session_id: str) -> FavoritesService:
        local = LocalFavoriteCache(self.local_path(session_id), owner=self._owner)
        controller = FallbackController(
            self._store,
            local,
            on_fallback=lambda exc: logger.warning(
                "Session %s switched to local favorites", session_id
            ),
        )

        async def supports(column_name: str) -> bool:
            if controller.mode is PersistenceMode.LOCAL:
                return True
            return (await self._prober.probe()).supports(column_name)

        view = OptimisticView(controller)
        descriptions = DescriptionCache(controller, self._describer, supports=supports)
        logger.debug("Created favorites session %s", session_id)
        return FavoritesService(
            controller=controller, view=view, descriptions=descriptions
        )


def get_favorites_registry(request: Request) -> FavoritesSessionRegistry:
    return request.app.state.favorites_registry


def get_favorites_service(
    registry: FavoritesSessionRegistry = Depends(get_favorites_registry),
    session_id: str = Header(DEFAULT_SESSION_ID, alias="X-Session-ID"),
) -> FavoritesService:
    """Resolve the caller's session-scoped :class:`FavoritesService`."""

    return registry.get(session_id)


__all__ = [
    "DEFAULT_SESSION_ID",
    "FavoritesService",
    "FavoritesSessionRegistry",
    "get_favorites_registry",
    "get_favorites_service",
    "normalize_session_id",
]
