"""
Redis-backed cache store adapter for the LLM gateway.

Exposes the three primitives the gateway needs (``get``, ``set`` with
expiry, atomic ``increment``) over any Redis-protocol server.  The
store fails closed: when no backend is configured, or when a call to
the backend fails, every operation raises :class:`StoreUnavailable`
instead of crashing the process.  Callers decide what "unavailable"
means for them (miss, skip the write, random rotation offset).
"""

import logging
import os
from typing import Any, Mapping, Optional

import redis.asyncio as aioredis

from llm_gateway.config import Settings, get_settings
from llm_gateway.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class CacheStore:
    """Async key-value store with expiry.

    Args:
        client: A ``redis.asyncio`` client (or compatible, e.g.
            ``fakeredis.aioredis.FakeRedis``) created with
            ``decode_responses=True``.  ``None`` means unconfigured.
    """

    def __init__(self, client: Optional[Any] = None) -> None:
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "CacheStore":
        """Build a store from the URL/token environment pair.

        Both variables named by ``settings.cache.url_env`` and
        ``settings.cache.token_env`` must be set; otherwise an
        unconfigured store is returned and caching is disabled.
        """
        settings = settings or get_settings()
        env = os.environ if environ is None else environ
        url = env.get(settings.cache.url_env)
        token = env.get(settings.cache.token_env)
        if not url or not token:
            logger.warning(
                "Cache backend not configured, caching disabled",
                extra={
                    "url_env": settings.cache.url_env,
                    "token_env": settings.cache.token_env,
                },
            )
            return cls(None)
        client = aioredis.from_url(
            url,
            password=token,
            decode_responses=True,
            socket_timeout=settings.cache.socket_timeout_seconds,
            socket_connect_timeout=settings.cache.socket_timeout_seconds,
        )
        return cls(client)

    @property
    def configured(self) -> bool:
        """``True`` when a backend client is present."""
        return self._client is not None

    def _require_client(self) -> Any:
        if self._client is None:
            raise StoreUnavailable("Cache backend not configured")
        return self._client

    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under *key*, or ``None`` if absent.

        Raises:
            StoreUnavailable: If unconfigured or the backend call fails.
        """
        client = self._require_client()
        try:
            return await client.get(key)
        except Exception as exc:
            raise StoreUnavailable(f"Cache get failed: {exc}") from exc

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store *value* under *key*, expiring after *ttl_seconds*.

        Overwrites any existing value.

        Raises:
            StoreUnavailable: If unconfigured or the backend call fails.
            ValueError: If *ttl_seconds* is not positive.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        client = self._require_client()
        try:
            await client.set(key, value, ex=ttl_seconds)
        except Exception as exc:
            raise StoreUnavailable(f"Cache set failed: {exc}") from exc

    async def increment(self, key: str) -> int:
        """Atomically increment the counter at *key* and return the new value.

        Raises:
            StoreUnavailable: If unconfigured or the backend call fails.
        """
        client = self._require_client()
        try:
            return int(await client.incr(key))
        except Exception as exc:
            raise StoreUnavailable(f"Cache increment failed: {exc}") from exc

    async def close(self) -> None:
        """Release the backend connection pool, if any."""
        if self._client is not None:
            await self._client.aclose()
