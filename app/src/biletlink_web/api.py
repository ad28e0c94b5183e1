import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from time import perf_counter
from typing import AsyncIterator, Optional
from urllib.parse import quote

from playwright.async_api import APIRequestContext, Error as PlaywrightError, async_playwright

from .cache import Cache, NullCache, cache_key_for_event
from .errors import EventApiError


async def _cache_get(cache: Cache, key: str) -> dict | None:
    try:
        return await asyncio.to_thread(cache.get_json, key)
    except Exception:
        logging.getLogger(__name__).warning("cache_get_failed key=%s", key, exc_info=True)
        return None


async def _cache_set(cache: Cache, key: str, value: dict, ttl_seconds: int) -> None:
    try:
        await asyncio.to_thread(cache.set_json, key, value, ttl_seconds)
    except Exception:
        logging.getLogger(__name__).warning("cache_set_failed key=%s", key, exc_info=True)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventApiClient:
    """Thin client for the BiletLink backend.

    ``get_event`` goes through the cache; the analytics calls never raise.
    """

    def __init__(
        self,
        request: APIRequestContext,
        api_url: str,
        cache: Optional[Cache] = None,
        event_cache_ttl_seconds: int = 60,
        cache_negative_ttl_seconds: int = 30,
    ) -> None:
        self._request = request
        self._api_url = api_url.rstrip("/")
        self._cache = cache or NullCache()
        self._event_ttl = event_cache_ttl_seconds
        self._negative_ttl = cache_negative_ttl_seconds
        self._logger = logging.getLogger(__name__)

    def event_url(self, event_id: str) -> str:
        return f"{self._api_url}/api/master-events/{quote(str(event_id), safe='')}"

    async def get_event(self, event_id: str) -> dict | None:
        url = self.event_url(event_id)
        cache_key = cache_key_for_event(url)
        cached = await _cache_get(self._cache, cache_key)
        if cached is not None:
            self._logger.info("event_cache_hit event_id=%s", event_id)
            if cached.get("error"):
                return None
            return cached.get("event")

        self._logger.info("event_fetch_start event_id=%s url=%s", event_id, url)
        start_ts = perf_counter()
        try:
            response = await self._request.get(url)
        except PlaywrightError as exc:
            self._logger.warning("event_fetch_failed event_id=%s url=%s", event_id, url, exc_info=True)
            raise EventApiError(0, url) from exc
        duration_ms = int((perf_counter() - start_ts) * 1000)

        if response.status == 404:
            self._logger.info("event_not_found event_id=%s duration_ms=%s", event_id, duration_ms)
            await _cache_set(
                self._cache,
                cache_key,
                {"event": None, "error": "not_found", "fetched_at": _now_iso()},
                self._negative_ttl,
            )
            return None
        if not response.ok:
            self._logger.warning(
                "event_fetch_bad_status event_id=%s status=%s duration_ms=%s",
                event_id,
                response.status,
                duration_ms,
            )
            raise EventApiError(response.status, url)

        try:
            payload = await response.json()
        except (PlaywrightError, ValueError) as exc:
            self._logger.warning("event_fetch_bad_json event_id=%s", event_id, exc_info=True)
            raise EventApiError(response.status, url) from exc

        self._logger.info(
            "event_fetch_end event_id=%s status=%s duration_ms=%s",
            event_id,
            response.status,
            duration_ms,
        )
        await _cache_set(
            self._cache,
            cache_key,
            {"event": payload, "fetched_at": _now_iso()},
            self._event_ttl,
        )
        return payload

    async def _post_quietly(self, url: str, params: dict | None = None) -> bool:
        try:
            response = await self._request.post(url, params=params)
        except PlaywrightError:
            self._logger.warning("analytics_post_failed url=%s", url, exc_info=True)
            return False
        if not response.ok:
            self._logger.warning("analytics_post_bad_status url=%s status=%s", url, response.status)
            return False
        return True

    async def track_view(self, event_id: str) -> bool:
        url = f"{self._api_url}/api/analytics/track/view/{quote(str(event_id), safe='')}"
        return await self._post_quietly(url)

    async def track_click(self, event_id: str, source: str) -> bool:
        url = f"{self._api_url}/api/analytics/track/click/{quote(str(event_id), safe='')}"
        return await self._post_quietly(url, params={"source": source})


@asynccontextmanager
async def open_api_client(config, cache: Optional[Cache] = None) -> AsyncIterator[EventApiClient]:
    async with async_playwright() as p:
        request = await p.request.new_context(
            extra_http_headers={"Accept": "application/json", "User-Agent": "biletlink-web"},
            timeout=config.request_timeout_ms,
        )
        try:
            yield EventApiClient(
                request,
                config.api_url,
                cache=cache,
                event_cache_ttl_seconds=config.event_cache_ttl_seconds,
                cache_negative_ttl_seconds=config.cache_negative_ttl_seconds,
            )
        finally:
            await request.dispose()
