"""Pydantic schemas for API requests and responses."""

from nomena.schemas.favorites import (  # noqa: F401
    CertificateData,
    DescriptionResult,
    FailedFavorite,
    Favorite,
    FavoriteCreate,
    FavoriteListResponse,
    FavoriteModeResponse,
    FavoriteUpdate,
    RenderedFavorite,
)
from nomena.schemas.names import (  # noqa: F401
    GeneratedName,
    NameDescribeRequest,
    NameDescription,
    NameGenerateRequest,
    NameGenerateResponse,
)
