"""
LLM request gateway.

Every AI-generation call goes through :meth:`Gateway.invoke`, which:

1. Serves the response from the cache when ``ttl > 0`` and the
   request's fingerprint is already stored.
2. Otherwise loads the key pool, picks a rotation offset from the
   shared counter, and tries credentials in order, moving to the next
   one only on a rate-limit failure.
3. Stores a successful response under the fingerprint when ``ttl > 0``.

Cache failures never reach the caller: a failed read is a miss, a
failed write is skipped, a failed counter increment becomes a random
offset.
"""

import logging
import random
from typing import Callable, List, Mapping, Optional

from llm_gateway.cache.store import CacheStore
from llm_gateway.completion import (
    CompletionInvoker,
    OpenAICompletionInvoker,
    classify_error,
)
from llm_gateway.config import Settings, get_settings
from llm_gateway.exceptions import (
    CredentialsExhausted,
    GatewayException,
    NoCredentialsConfigured,
    RateLimited,
    StoreUnavailable,
)
from llm_gateway.fingerprint import cache_key, fingerprint
from llm_gateway.keys import load_key_pool, select_start_index
from llm_gateway.models import ChatRequest

logger = logging.getLogger(__name__)


class Gateway:
    """Single choke point for completion-service calls.

    Holds no per-request state; one instance may serve many concurrent
    invocations.

    Args:
        store: Cache store; an unconfigured store disables caching.
        invoker: Performs one completion call per credential.
        settings: Settings to read; defaults to :func:`get_settings`.
        key_loader: Returns the credential pool; called once per
            invocation.  Defaults to :func:`load_key_pool` over
            *environ*.
        environ: Environment mapping for the default key loader.
        rng: Random source for the fallback rotation offset.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        invoker: Optional[CompletionInvoker] = None,
        settings: Optional[Settings] = None,
        key_loader: Optional[Callable[[], List[str]]] = None,
        environ: Optional[Mapping[str, str]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store if store is not None else CacheStore.from_settings(self._settings)
        self._invoker = invoker or OpenAICompletionInvoker.from_settings(self._settings)
        api_key_env = self._settings.completion.api_key_env
        self._key_loader = key_loader or (lambda: load_key_pool(environ, api_key_env))
        self._rng = rng or random.Random()

    @property
    def store(self) -> CacheStore:
        return self._store

    def _cache_key_for(self, request: ChatRequest) -> str:
        cache = self._settings.cache
        if cache.include_sampling_params:
            fp = fingerprint(
                request.model,
                request.messages,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        else:
            fp = fingerprint(request.model, request.messages)
        return cache_key(request.model, fp, prefix=cache.key_prefix)

    async def _cache_get(self, key: str) -> Optional[str]:
        try:
            cached = await self._store.get(key)
        except StoreUnavailable as exc:
            logger.warning(
                "Cache read failed, treating as miss",
                extra={"cache_key": key, "error": str(exc)},
            )
            return None
        if cached is None:
            logger.debug("Cache miss", extra={"cache_key": key})
        else:
            logger.debug("Cache hit", extra={"cache_key": key})
        return cached

    async def _cache_set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self._store.set(key, value, ttl)
        except StoreUnavailable as exc:
            logger.warning(
                "Cache write failed, response not cached",
                extra={"cache_key": key, "error": str(exc)},
            )
            return
        logger.debug("Cache set", extra={"cache_key": key, "ttl": ttl})

    async def invoke(self, request: ChatRequest) -> str:
        """Return the completion text for *request*.

        Args:
            request: The chat request; ``ttl == 0`` bypasses the cache.

        Returns:
            The completion text (``""`` when the service sent no content).

        Raises:
            NoCredentialsConfigured: If the key pool is empty.
            RateLimited: If every credential was rate limited.
            CompletionServiceError: On any other completion failure.
        """
        key: Optional[str] = None
        if request.ttl > 0:
            key = self._cache_key_for(request)
            cached = await self._cache_get(key)
            if cached is not None:
                return cached

        pool = self._key_loader()
        if not pool:
            raise NoCredentialsConfigured(
                f"No completion-service credentials configured "
                f"(set {self._settings.completion.api_key_env} "
                f"or {self._settings.completion.api_key_env}_1..N)"
            )

        size = len(pool)
        start = await select_start_index(
            self._store,
            size,
            self._settings.cache.rotation_counter_key,
            rng=self._rng,
        )

        last_error: Optional[GatewayException] = None
        for attempt in range(size):
            index = (start + attempt) % size
            try:
                text = await self._invoker.complete(pool[index], request)
            except Exception as exc:
                error = classify_error(exc)
                if isinstance(error, RateLimited) and attempt < size - 1:
                    logger.warning(
                        "Credential rate limited, rotating",
                        extra={"key_index": index, "attempt": attempt + 1, "pool_size": size},
                    )
                    last_error = error
                    continue
                logger.error(
                    "Completion call failed",
                    extra={
                        "key_index": index,
                        "attempt": attempt + 1,
                        "pool_size": size,
                        "error_type": type(error).__name__,
                    },
                )
                if error is exc:
                    raise
                raise error from exc

            text = text or ""
            if key is not None:
                await self._cache_set(key, text, request.ttl)
            return text

        raise last_error or CredentialsExhausted("All credentials exhausted")


_default_gateway: Optional[Gateway] = None


def get_gateway() -> Gateway:
    """Return the process-wide default :class:`Gateway`, creating it lazily."""
    global _default_gateway
    if _default_gateway is None:
        _default_gateway = Gateway()
    return _default_gateway


def reset_gateway() -> None:
    """Drop the default gateway (for testing)."""
    global _default_gateway
    _default_gateway = None


async def invoke(request: ChatRequest) -> str:
    """Run *request* through the default gateway."""
    return await get_gateway().invoke(request)
