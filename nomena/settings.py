"""Centralized configuration management for the Nomena backend."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer of :mod:`nomena.settings` sees the same values.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_SQLITE_DATABASE_URL = "sqlite+aiosqlite:///./data/nomena.db"
POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_GUEST_OWNER = "guest@example.com"
DEFAULT_FAVORITES_TABLE = "favorites"
DEFAULT_LOCAL_FAVORITES_DIR = "./data/local_favorites"
DEFAULT_MAX_FAVORITES_SESSIONS = 1024
DEFAULT_REFERENCE_API_URL = "https://en.wikipedia.org/api/rest_v1"


def _normalize_origin(origin: str) -> str:
    """Return the origin stripped of whitespace and trailing slashes."""

    return origin.strip().rstrip("/")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Besides the raw environment values the class exposes a couple of derived
    helpers (normalized database URL, numeric log level) so that downstream
    modules never repeat parsing logic.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True

    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "Full SQLAlchemy-compatible database URL. Postgres URLs supplied in"
            " sync format (postgres:// or postgresql://) are coerced into the"
            " async psycopg driver string at runtime."
        ),
    )
    use_sqlite: bool = Field(
        default=False,
        alias="USE_SQLITE",
        description="Force SQLite usage regardless of DATABASE_URL.",
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string consumed by the cache client.",
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of additional CORS origins.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )
    openai_api_key: str | None = Field(
        default=None,
        alias="OPENAI_API_KEY",
        description="API key used by the text generation collaborator.",
    )
    openai_names_model: str = Field(
        default="gpt-3.5-turbo",
        alias="OPENAI_NAMES_MODEL",
        description="Chat model used to suggest names for a theme.",
    )
    openai_description_model: str = Field(
        default="gpt-4",
        alias="OPENAI_DESCRIPTION_MODEL",
        description="Chat model used to write long-form name descriptions.",
    )
    openai_timeout_seconds: float = Field(
        default=60.0,
        alias="OPENAI_TIMEOUT_SECONDS",
    )
    reference_api_url: str = Field(
        default=DEFAULT_REFERENCE_API_URL,
        alias="REFERENCE_API_URL",
        description="Base URL of the Wikipedia REST API used for name summaries.",
    )
    reference_cache_ttl_seconds: int = Field(
        default=86_400,
        alias="REFERENCE_CACHE_TTL_SECONDS",
        description="How long reference summaries stay in Redis.",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        alias="HTTP_TIMEOUT_SECONDS",
    )
    favorites_table: str = Field(
        default=DEFAULT_FAVORITES_TABLE,
        alias="FAVORITES_TABLE",
        description="Name of the remote favorites table.",
    )
    local_favorites_dir: Path = Field(
        default=Path(DEFAULT_LOCAL_FAVORITES_DIR),
        alias="LOCAL_FAVORITES_DIR",
        description=(
            "Directory holding one JSON file per session once a session falls"
            " back to local persistence."
        ),
    )
    favorites_max_sessions: int = Field(
        default=DEFAULT_MAX_FAVORITES_SESSIONS,
        alias="FAVORITES_MAX_SESSIONS",
        description="How many favorites sessions are kept in memory at once.",
    )
    guest_owner: str = Field(
        default=DEFAULT_GUEST_OWNER,
        alias="GUEST_OWNER",
        description="Owner identity stamped on favorites; no account system exists.",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the async-compatible database URL after applying fallbacks."""

        if self.use_sqlite or not self.database_url:
            return DEFAULT_SQLITE_DATABASE_URL

        url = self.database_url.strip()

        for prefix in POSTGRES_SYNC_PREFIXES:
            if url.startswith(prefix):
                return url.replace(prefix, POSTGRES_ASYNC_PREFIX, 1)

        if url.startswith(POSTGRES_ASYNC_PREFIX) or url.startswith("sqlite+aiosqlite://"):
            return url

        raise RuntimeError(
            f"Expected a PostgreSQL connection string or SQLite fallback, received: {url}"
        )

    @property
    def database_type(self) -> str:
        """Return ``sqlite`` when using SQLite otherwise ``postgresql``."""

        if self.resolved_database_url.startswith("sqlite"):
            return "sqlite"
        return "postgresql"

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins supplied via environment variables."""

        if not self.cors_allow_origins_raw:
            return []

        origins = [
            _normalize_origin(origin)
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return [origin for origin in origins if origin]

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_redis_url and self.redis_url == DEFAULT_REDIS_URL:
            warnings.append(
                "REDIS_URL is not set - reference summaries will not be cached"
            )

        if not self.openai_api_key:
            warnings.append(
                "OPENAI_API_KEY is not set - name generation and descriptions will fail"
            )

        if self.database_type == "sqlite":
            warnings.append(
                "DATABASE_URL is not set - favorites are stored in a local SQLite file"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_FAVORITES_TABLE",
    "DEFAULT_GUEST_OWNER",
    "DEFAULT_LOCAL_FAVORITES_DIR",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MAX_FAVORITES_SESSIONS",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SQLITE_DATABASE_URL",
    "POSTGRES_ASYNC_PREFIX",
    "POSTGRES_SYNC_PREFIXES",
    "get_settings",
]
