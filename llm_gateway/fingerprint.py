"""
Request fingerprinting for the response cache.

A fingerprint is the SHA-256 hex digest of the model name followed by
every message's content, in order::

    sha256(model + ":" + "|".join(contents))

Roles are not part of the digest.  The ``|`` separator is not escaped,
so contents that themselves contain ``|`` can in principle collide.
Sampling parameters participate only when passed explicitly.
"""

import hashlib
from typing import Optional, Sequence

from llm_gateway.models import ChatMessage


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def fingerprint(
    model: str,
    messages: Sequence[ChatMessage],
    *,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> str:
    """Return a deterministic digest of a request's semantic content.

    Args:
        model: Model identifier.
        messages: The exact ordered sequence that will be sent.
        temperature: Appended to the digest input when not ``None``.
        max_tokens: Appended to the digest input when not ``None``.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    material = model + ":" + "|".join(m.content for m in messages)
    if temperature is not None:
        material += f":t={temperature!r}"
    if max_tokens is not None:
        material += f":m={max_tokens}"
    return _sha256(material)


def cache_key(model: str, request_fingerprint: str, prefix: str = "llm") -> str:
    """Namespaced store key for a fingerprint: ``<prefix>:sha256(model:fp)``."""
    return f"{prefix}:{_sha256(model + ':' + request_fingerprint)}"
