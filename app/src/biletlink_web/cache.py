import hashlib
import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

import redis

EVENT_KEY_PREFIX = "biletlink:event:"


class Cache(ABC):
    """JSON document store for fetched event payloads, keyed by event URL."""

    @abstractmethod
    def get_json(self, key: str) -> Optional[dict]: ...

    @abstractmethod
    def set_json(self, key: str, value: dict, ttl_seconds: int) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class NullCache(Cache):
    def get_json(self, key: str) -> Optional[dict]:
        return None

    def set_json(self, key: str, value: dict, ttl_seconds: int) -> None:
        return None

    def close(self) -> None:
        return None


class RedisCache(Cache):
    """Event documents in redis. A connection is verified up front; after
    that every failure degrades to a miss so a flaky redis only costs a refetch."""

    def __init__(self, redis_url: str, logger: logging.Logger, client: Optional[redis.Redis] = None) -> None:
        self._logger = logger
        self._client = client or redis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        self._client.ping()

    def get_json(self, key: str) -> Optional[dict]:
        try:
            raw = self._client.get(key)
        except redis.RedisError:
            self._logger.warning("cache_get_failed key=%s", key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            document = json.loads(raw)
        except ValueError:
            self._logger.warning("cache_entry_corrupt key=%s", key)
            return None
        if not isinstance(document, dict):
            self._logger.warning("cache_entry_corrupt key=%s type=%s", key, type(document).__name__)
            return None
        return document

    def set_json(self, key: str, value: dict, ttl_seconds: int) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False)
            self._client.setex(key, ttl_seconds, payload)
        except (redis.RedisError, TypeError, ValueError):
            self._logger.warning("cache_set_failed key=%s ttl_seconds=%s", key, ttl_seconds, exc_info=True)

    def close(self) -> None:
        try:
            self._client.close()
        except redis.RedisError:
            self._logger.debug("cache_close_failed", exc_info=True)


def cache_key_for_event(event_url: str) -> str:
    """Key for one master-event document. The full URL carries both the
    backend host and the quoted event id, so two backends never share keys."""
    digest = hashlib.sha1(event_url.encode("utf-8")).hexdigest()
    return f"{EVENT_KEY_PREFIX}{digest}"


def build_cache(config, logger: logging.Logger) -> Cache:
    if not config.cache_enabled:
        logger.info("cache_disabled")
        return NullCache()

    if not config.redis_url:
        logger.warning("cache_enabled_but_no_redis_url")
        return NullCache()

    try:
        cache = RedisCache(config.redis_url, logger)
    except (redis.RedisError, ValueError):
        logger.warning("cache_init_failed redis_url=%s using NullCache", config.redis_url, exc_info=True)
        return NullCache()
    logger.info("cache_enabled redis_url=%s ttl_seconds=%s", config.redis_url, config.event_cache_ttl_seconds)
    return cache
