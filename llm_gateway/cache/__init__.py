"""Cache store adapter."""

from llm_gateway.cache.store import CacheStore

__all__ = ["CacheStore"]
