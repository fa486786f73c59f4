"""Favorites persistence components split by responsibility.

The remote store, its schema prober and the local JSON cache hold data; the
fallback controller chooses between them per session; the description cache
and the optimistic view sit on top and are driven by
:class:`nomena.services.favorites_service.FavoritesService`.
"""

from .descriptions import DescriptionCache
from .errors import (
    FavoriteNotFound,
    FavoritesError,
    SchemaMismatch,
    StoreUnavailable,
    ValidationError,
)
from .fallback import FallbackController
from .local import LocalFavoriteCache
from .persistence import FavoriteStore
from .schema_probe import SchemaCapabilities, SchemaProber
from .view import OptimisticView

__all__ = [
    "DescriptionCache",
    "FallbackController",
    "FavoriteNotFound",
    "FavoriteStore",
    "FavoritesError",
    "LocalFavoriteCache",
    "OptimisticView",
    "SchemaCapabilities",
    "SchemaMismatch",
    "SchemaProber",
    "StoreUnavailable",
    "ValidationError",
]
