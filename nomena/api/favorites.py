"""FastAPI router exposing the session-scoped favorites list."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from nomena.schemas.favorites import (
    CertificateData,
    DescriptionResult,
    FavoriteCreate,
    FavoriteListResponse,
    FavoriteModeResponse,
    FavoriteUpdate,
    RenderedFavorite,
)
from nomena.services.favorites_service import FavoritesService, get_favorites_service

router = APIRouter()


@router.get("", response_model=FavoriteListResponse)
async def list_favorites(
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoriteListResponse:
    """Re-read the session's favorites and return them newest first."""

    return await service.list_favorites()


@router.get("/view", response_model=FavoriteListResponse)
async def current_view(
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoriteListResponse:
    """Return the in-memory list, including saves still in flight."""

    return await service.list_favorites(refresh=False)


@router.get("/mode", response_model=FavoriteModeResponse)
async def persistence_mode(
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoriteModeResponse:
    return FavoriteModeResponse(mode=service.mode)


@router.post("", response_model=RenderedFavorite, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    payload: FavoriteCreate,
    service: FavoritesService = Depends(get_favorites_service),
) -> RenderedFavorite:
    return await service.add_favorite(payload.to_draft())


@router.post(
    "/{favorite_id}/retry",
    response_model=RenderedFavorite,
    status_code=status.HTTP_201_CREATED,
)
async def retry_favorite(
    favorite_id: str,
    service: FavoritesService = Depends(get_favorites_service),
) -> RenderedFavorite:
    """Re-submit a favorite whose save failed earlier in this session."""

    return await service.retry_favorite(favorite_id)


@router.patch("/{favorite_id}", response_model=RenderedFavorite)
async def update_favorite(
    favorite_id: str,
    payload: FavoriteUpdate,
    service: FavoritesService = Depends(get_favorites_service),
) -> RenderedFavorite:
    return await service.update_favorite(favorite_id, payload)


@router.delete("/{favorite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favorite(
    favorite_id: str,
    service: FavoritesService = Depends(get_favorites_service),
) -> Response:
    await service.remove_favorite(favorite_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{favorite_id}/description", response_model=DescriptionResult)
async def ensure_description(
    favorite_id: str,
    service: FavoritesService = Depends(get_favorites_service),
) -> DescriptionResult:
    """Generate and store a description unless the favorite already has one."""

    return await service.ensure_description(favorite_id)


@router.get("/{favorite_id}/certificate", response_model=CertificateData)
async def certificate(
    favorite_id: str,
    service: FavoritesService = Depends(get_favorites_service),
) -> CertificateData:
    return await service.certificate(favorite_id)
