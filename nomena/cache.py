from __future__ import annotations

import asyncio
import json
import logging
from hashlib import sha256
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from nomena.settings import get_settings

logger = logging.getLogger(__name__)

_DEFAULT_TTL_SECONDS = 600
_REFERENCE_SUMMARY_PREFIX = "names:reference"
_UNAVAILABLE_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)

_redis_client: Redis | None = None
_client_lock = asyncio.Lock()
_redis_disabled = False


def reference_summary_key(name: str) -> str:
    digest = sha256(name.strip().lower().encode("utf-8")).hexdigest()
    return f"{_REFERENCE_SUMMARY_PREFIX}:{digest}"


async def get_redis() -> Redis | None:
    """Get Redis client, returning None if connection fails."""
    global _redis_client, _redis_disabled

    if _redis_disabled:
        logger.debug("Redis connection disabled after previous failure; skipping attempt.")
        return None

    async with _client_lock:
        if _redis_client is not None:
            return _redis_client

        if _redis_disabled:
            return None

        client = Redis.from_url(
            get_settings().redis_url, decode_responses=True, encoding="utf-8"
        )
        try:
            await client.ping()
        except _UNAVAILABLE_ERRORS as exc:
            logger.warning("Redis connection failed: %s. Caching will be disabled.", exc)
            await client.aclose()
            _redis_disabled = True
            return None

        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


class CacheClient:
    """JSON helpers over Redis that turn into no-ops when Redis is unreachable."""

    def __init__(self, redis: Redis | None) -> None:
        self._redis = redis

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return None
        try:
            payload = await self._redis.get(key)
        except _UNAVAILABLE_ERRORS as exc:
            logger.debug("Redis get failed for key %s: %s", key, exc)
            return None
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        encoded = json.dumps(value, default=str)
        if ttl is None:
            ttl = _DEFAULT_TTL_SECONDS
        try:
            await self._redis.set(key, encoded, ex=ttl)
        except _UNAVAILABLE_ERRORS as exc:
            logger.debug("Redis set failed for key %s: %s", key, exc)


async def get_cache_client() -> CacheClient:
    redis = await get_redis()
    return CacheClient(redis)


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""
    global _redis_client, _redis_disabled
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled = False


__all__ = [
    "CacheClient",
    "close_redis",
    "get_cache_client",
    "get_redis",
    "reference_summary_key",
]
