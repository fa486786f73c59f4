"""Convert stored favorites into what the user and the certificate see."""

from __future__ import annotations

from nomena.schemas.favorites import (
    PLACEHOLDER_TEXT,
    UNKNOWN_ORIGIN,
    CertificateData,
    DescriptionStatus,
    Favorite,
    RenderedFavorite,
)


def render_favorite(
    favorite: Favorite,
    *,
    pending: bool = False,
    status: DescriptionStatus | None = None,
) -> RenderedFavorite:
    """Attach display fields; none of them is ever empty."""

    return RenderedFavorite(
        **favorite.model_dump(),
        display_description=favorite.resolved_description(),
        display_meaning=favorite.meaning or PLACEHOLDER_TEXT,
        display_origin=favorite.origin or UNKNOWN_ORIGIN,
        pending=pending,
        description_status=status,
    )


def certificate_data(favorite: Favorite) -> CertificateData:
    return CertificateData(
        name=favorite.name,
        history=favorite.resolved_description(),
        meaning=favorite.meaning or PLACEHOLDER_TEXT,
    )


__all__ = ["certificate_data", "render_favorite"]
