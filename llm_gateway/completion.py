"""
Completion-service invoker.

One credential plus one :class:`ChatRequest` becomes one outbound chat
completion call against an OpenAI-compatible endpoint (Groq by
default).  Failures come back as :class:`RateLimited` or
:class:`CompletionServiceError` so the gateway can decide whether to
rotate to another key.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

import openai
from openai import AsyncOpenAI

from llm_gateway.config import Settings, get_settings
from llm_gateway.exceptions import (
    CompletionServiceError,
    GatewayException,
    RateLimited,
)
from llm_gateway.models import ChatRequest

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = (
    "rate limit",
    "rate_limit",
    "ratelimit",
    "too many requests",
    "quota",
)


def _status_code(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return ``True`` if *exc* signals quota or throughput exhaustion.

    Decided by exception type, an HTTP 429 status, or a message
    substring such as "rate limit" or "quota".
    """
    if isinstance(exc, (RateLimited, openai.RateLimitError)):
        return True
    if _status_code(exc) == 429:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


def classify_error(exc: BaseException) -> GatewayException:
    """Map any completion failure onto the gateway's error taxonomy.

    A :class:`RateLimited` is returned unchanged.  Every other error,
    gateway or foreign, is judged by status code and message: a rate
    limit signal becomes :class:`RateLimited`, other gateway exceptions
    are returned unchanged, and the rest become
    :class:`CompletionServiceError`.  The caller is expected to chain
    the original with ``raise ... from exc`` when a new error is built.
    """
    if isinstance(exc, RateLimited):
        return exc
    status = _status_code(exc)
    if is_rate_limit_error(exc):
        return RateLimited(str(exc) or "Rate limited", status_code=status or 429)
    if isinstance(exc, GatewayException):
        return exc
    return CompletionServiceError(
        str(exc) or exc.__class__.__name__, status_code=status
    )


@runtime_checkable
class CompletionInvoker(Protocol):
    """Anything that can turn one credential and one request into text."""

    async def complete(self, credential: str, request: ChatRequest) -> Optional[str]:
        """Perform one completion call.

        Returns:
            The first choice's text, or ``None`` if the service sent none.
        """
        ...


class OpenAICompletionInvoker:
    """Chat completions through the ``openai`` async SDK.

    SDK-level retries are disabled: retrying a rate-limited call is the
    gateway's job, and it does so with a different credential.

    Args:
        base_url: OpenAI-compatible API root.
        timeout_seconds: Per-call HTTP timeout.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        if base_url is None or timeout_seconds is None:
            completion = get_settings().completion
            base_url = base_url or completion.base_url
            if timeout_seconds is None:
                timeout_seconds = completion.timeout_seconds
        self._base_url = base_url
        self._timeout = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "OpenAICompletionInvoker":
        settings = settings or get_settings()
        return cls(
            base_url=settings.completion.base_url,
            timeout_seconds=settings.completion.timeout_seconds,
        )

    async def complete(self, credential: str, request: ChatRequest) -> Optional[str]:
        client = AsyncOpenAI(
            api_key=credential,
            base_url=self._base_url,
            timeout=self._timeout,
            max_retries=0,
        )
        try:
            response = await client.chat.completions.create(
                model=request.model,
                messages=[m.model_dump() for m in request.messages],
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        except openai.OpenAIError as exc:
            error = classify_error(exc)
            raise error from exc
        finally:
            await client.close()

        if not response.choices:
            return None
        return response.choices[0].message.content
