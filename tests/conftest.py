"""Shared fixtures for the gateway test suite.

Provides an in-memory fakeredis backend, a store whose backend always
fails, and a scripted completion invoker that records every call.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from llm_gateway.cache.store import CacheStore
from llm_gateway.config import Settings, reset_settings
from llm_gateway.exceptions import CompletionServiceError, RateLimited
from llm_gateway.gateway import reset_gateway
from llm_gateway.models import ChatRequest


@pytest.fixture(autouse=True)
def _clean_state():
    """Reset singletons and the package logger around each test."""
    reset_settings()
    reset_gateway()
    yield
    reset_settings()
    reset_gateway()
    pkg_logger = logging.getLogger("llm_gateway")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def fake_redis():
    """Async fakeredis client with string responses."""
    aioredis = pytest.importorskip("fakeredis.aioredis")
    return aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(fake_redis) -> CacheStore:
    return CacheStore(fake_redis)


class BrokenRedis:
    """Redis stand-in whose every command fails with a connection error."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    async def get(self, key: str) -> Optional[str]:
        self.calls.append("get")
        raise RedisConnectionError("connection refused")

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        self.calls.append("set")
        raise RedisConnectionError("connection refused")

    async def incr(self, key: str) -> int:
        self.calls.append("incr")
        raise RedisConnectionError("connection refused")

    async def aclose(self) -> None:
        pass


@pytest.fixture
def broken_redis() -> BrokenRedis:
    return BrokenRedis()


class RecordingStore(CacheStore):
    """CacheStore that records which operations were attempted."""

    def __init__(self, client: Any = None) -> None:
        super().__init__(client)
        self.operations: List[str] = []

    async def get(self, key: str) -> Optional[str]:
        self.operations.append("get")
        return await super().get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.operations.append("set")
        await super().set(key, value, ttl_seconds)

    async def increment(self, key: str) -> int:
        self.operations.append("increment")
        return await super().increment(key)


Behaviour = Union[str, None, BaseException, Callable[[ChatRequest], Optional[str]]]


class FakeInvoker:
    """Completion invoker scripted per credential.

    Each credential maps to a response string (or ``None``), an
    exception instance to raise, or a callable taking the request.
    Unscripted credentials answer with ``default``.
    """

    def __init__(
        self,
        behaviours: Optional[Dict[str, Behaviour]] = None,
        default: Behaviour = "ok",
    ) -> None:
        self.behaviours = behaviours or {}
        self.default = default
        self.calls: List[Tuple[str, ChatRequest]] = []

    @property
    def credentials_used(self) -> List[str]:
        return [credential for credential, _ in self.calls]

    async def complete(self, credential: str, request: ChatRequest) -> Optional[str]:
        self.calls.append((credential, request))
        behaviour = self.behaviours.get(credential, self.default)
        if isinstance(behaviour, BaseException):
            raise behaviour
        if callable(behaviour):
            return behaviour(request)
        return behaviour


def rate_limited() -> RateLimited:
    return RateLimited("Rate limit reached for model", status_code=429)


def auth_failed() -> CompletionServiceError:
    return CompletionServiceError("Invalid API Key", status_code=401)


@pytest.fixture
def make_request() -> Callable[..., ChatRequest]:
    def _make(content: str = "Explain IAM roles", **kwargs: Any) -> ChatRequest:
        kwargs.setdefault("model", "llama-3.3-70b-versatile")
        kwargs.setdefault("ttl", 3600)
        kwargs.setdefault("temperature", 0.7)
        kwargs.setdefault("max_tokens", 4000)
        return ChatRequest(messages=[{"role": "user", "content": content}], **kwargs)

    return _make
