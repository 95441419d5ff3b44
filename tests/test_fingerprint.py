"""Tests for request fingerprinting and cache key derivation."""

import hashlib

from llm_gateway.fingerprint import cache_key, fingerprint
from llm_gateway.models import ChatMessage

MODEL = "llama-3.3-70b-versatile"


def _msgs(*contents: str, role: str = "user"):
    return [ChatMessage(role=role, content=c) for c in contents]


class TestFingerprint:
    def test_deterministic(self) -> None:
        assert fingerprint(MODEL, _msgs("a", "b")) == fingerprint(MODEL, _msgs("a", "b"))

    def test_matches_documented_layout(self) -> None:
        expected = hashlib.sha256(f"{MODEL}:first|second".encode("utf-8")).hexdigest()
        assert fingerprint(MODEL, _msgs("first", "second")) == expected

    def test_content_change_changes_fingerprint(self) -> None:
        assert fingerprint(MODEL, _msgs("a", "b")) != fingerprint(MODEL, _msgs("a", "c"))

    def test_order_matters(self) -> None:
        assert fingerprint(MODEL, _msgs("a", "b")) != fingerprint(MODEL, _msgs("b", "a"))

    def test_model_matters(self) -> None:
        assert fingerprint(MODEL, _msgs("a")) != fingerprint("llama-3.1-8b-instant", _msgs("a"))

    def test_roles_do_not_participate(self) -> None:
        assert fingerprint(MODEL, _msgs("a", role="user")) == fingerprint(
            MODEL, _msgs("a", role="system")
        )

    def test_sampling_params_only_when_given(self) -> None:
        base = fingerprint(MODEL, _msgs("a"))
        assert fingerprint(MODEL, _msgs("a"), temperature=0.7) != base
        assert fingerprint(MODEL, _msgs("a"), max_tokens=100) != base
        assert fingerprint(MODEL, _msgs("a"), temperature=0.7) != fingerprint(
            MODEL, _msgs("a"), temperature=0.2
        )

    def test_unicode_content(self) -> None:
        fp = fingerprint(MODEL, _msgs("Qu'est-ce que l'IAM ? 🔐"))
        assert len(fp) == 64


class TestCacheKey:
    def test_namespaced(self) -> None:
        fp = fingerprint(MODEL, _msgs("a"))
        expected = hashlib.sha256(f"{MODEL}:{fp}".encode("utf-8")).hexdigest()
        assert cache_key(MODEL, fp) == f"llm:{expected}"

    def test_custom_prefix(self) -> None:
        assert cache_key(MODEL, "abc", prefix="tutor").startswith("tutor:")
