"""Tests for ChatMessage / ChatRequest validation and builders."""

import pytest
from pydantic import ValidationError

from llm_gateway.models import FAST_MODEL, SMART_MODEL, ChatMessage, ChatRequest


class TestChatRequest:
    def test_defaults_from_settings(self) -> None:
        req = ChatRequest(model=SMART_MODEL, messages=[{"role": "user", "content": "hi"}])
        assert req.temperature == 0.7
        assert req.max_tokens == 4000
        assert req.ttl == 3600
        assert isinstance(req.messages[0], ChatMessage)

    def test_empty_messages_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatRequest(model=SMART_MODEL, messages=[])

    def test_empty_model_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatRequest(model="", messages=[{"role": "user", "content": "hi"}])

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatRequest(model=SMART_MODEL, messages=[{"role": "user", "content": "hi"}], ttl=-1)

    def test_zero_ttl_allowed(self) -> None:
        req = ChatRequest(model=SMART_MODEL, messages=[{"role": "user", "content": "hi"}], ttl=0)
        assert req.ttl == 0

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatMessage(role="tool", content="x")

    def test_non_positive_max_tokens_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatRequest(
                model=SMART_MODEL,
                messages=[{"role": "user", "content": "hi"}],
                max_tokens=0,
            )


class TestBuilders:
    def test_user_uses_smart_model(self) -> None:
        req = ChatRequest.user("Generate a roadmap", max_tokens=4000, ttl=86400)
        assert req.model == SMART_MODEL
        assert [m.role for m in req.messages] == ["user"]
        assert req.ttl == 86400

    def test_with_system_uses_fast_model(self) -> None:
        history = [
            ChatMessage(role="user", content="What is IAM?"),
            ChatMessage(role="assistant", content="Identity and Access Management."),
        ]
        req = ChatRequest.with_system("You are a tutor.", history, ttl=0)
        assert req.model == FAST_MODEL
        assert [m.role for m in req.messages] == ["system", "user", "assistant"]
        assert req.messages[0].content == "You are a tutor."

    def test_explicit_model_wins(self) -> None:
        assert ChatRequest.user("hi", model="custom-model").model == "custom-model"
