"""
Request models for the LLM gateway.

A :class:`ChatRequest` carries everything the gateway needs for one
completion: the model, the ordered message sequence, sampling
parameters, and the cache TTL (``0`` disables caching).
"""

from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from llm_gateway.config import get_settings

# Deep reasoning, long structured generation (roadmaps, lessons, projects, quizzes).
SMART_MODEL = "llama-3.3-70b-versatile"

# Conversational, low-latency responses (tutor chat, interview practice).
FAST_MODEL = "llama-3.1-8b-instant"

Role = Literal["user", "system", "assistant"]


class ChatMessage(BaseModel):
    """A single message in a chat completion request.

    Attributes:
        role: Who authored the message.
        content: Message text.
    """

    role: Role
    content: str


class ChatRequest(BaseModel):
    """A completion request routed through the gateway.

    Attributes:
        model: Completion-service model identifier (non-empty).
        messages: Ordered, non-empty message sequence sent verbatim.
        temperature: Sampling temperature.
        max_tokens: Upper bound on generated tokens.
        ttl: Cache lifetime in seconds; ``0`` means never cache.
    """

    model: str = Field(..., min_length=1)
    messages: List[ChatMessage] = Field(..., min_length=1)
    temperature: float = Field(
        default_factory=lambda: get_settings().completion.default_temperature,
        ge=0.0,
        le=2.0,
    )
    max_tokens: int = Field(
        default_factory=lambda: get_settings().completion.default_max_tokens,
        gt=0,
    )
    ttl: int = Field(
        default_factory=lambda: get_settings().cache.default_ttl_seconds,
        ge=0,
    )

    @classmethod
    def user(cls, prompt: str, model: Optional[str] = None, **kwargs) -> "ChatRequest":
        """Build a single user-message request.

        Args:
            prompt: The user prompt.
            model: Model identifier; defaults to the configured smart model.
            **kwargs: ``temperature``, ``max_tokens`` or ``ttl`` overrides.
        """
        return cls(
            model=model or get_settings().completion.smart_model,
            messages=[ChatMessage(role="user", content=prompt)],
            **kwargs,
        )

    @classmethod
    def with_system(
        cls,
        system: str,
        history: Sequence[ChatMessage],
        model: Optional[str] = None,
        **kwargs,
    ) -> "ChatRequest":
        """Build a system-prompt + conversation request (tutor/interview chat).

        Args:
            system: System prompt placed first.
            history: Prior user/assistant turns, oldest first.
            model: Model identifier; defaults to the configured fast model.
            **kwargs: ``temperature``, ``max_tokens`` or ``ttl`` overrides.
        """
        return cls(
            model=model or get_settings().completion.fast_model,
            messages=[ChatMessage(role="system", content=system), *history],
            **kwargs,
        )
