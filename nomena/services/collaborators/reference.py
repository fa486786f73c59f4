"""Reference summary lookup against the Wikipedia REST API."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from nomena.cache import CacheClient, reference_summary_key
from nomena.services.collaborators.errors import CollaboratorFailure

logger = logging.getLogger(__name__)

COLLABORATOR = "reference-lookup"
USER_AGENT = "Nomena/0.1 (baby name suggestions)"


class WikipediaSummaryClient:
    """Fetch short factual page summaries for a name.

    Ambiguous (disambiguation) and unknown pages yield ``None``. Both found
    and missing results are cached so repeated lookups skip the network.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: str,
        cache: CacheClient | None = None,
        cache_ttl: int = 86_400,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._cache = cache or CacheClient(None)
        self._cache_ttl = cache_ttl

    async def lookup(self, name: str) -> str | None:
        title = name.strip()
        if not title:
            return None

        cache_key = reference_summary_key(title)
        cached = await self._cache.get_json(cache_key)
        if isinstance(cached, dict) and "summary" in cached:
            return cached["summary"]

        summary = await self._fetch(title)
        await self._cache.set_json(cache_key, {"summary": summary}, ttl=self._cache_ttl)
        return summary

    async def _fetch(self, title: str) -> str | None:
        url = f"{self._base_url}/page/summary/{quote(title.replace(' ', '_'), safe='')}"
        try:
            response = await self._http.get(
                url,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                follow_redirects=True,
            )
            if response.status_code == 404:
                logger.debug("No reference page for %r", title)
                return None
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise CollaboratorFailure(COLLABORATOR, f"lookup for {title!r} failed: {exc}") from exc
        except ValueError as exc:
            raise CollaboratorFailure(COLLABORATOR, f"invalid JSON for {title!r}") from exc

        if not isinstance(payload, dict) or payload.get("type") == "disambiguation":
            return None
        extract = payload.get("extract")
        if not isinstance(extract, str) or not extract.strip():
            return None
        return extract.strip()


__all__ = ["WikipediaSummaryClient"]
