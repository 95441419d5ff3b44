"""LLM request gateway: response caching, key rotation, JSON extraction."""

from llm_gateway.exceptions import (
    CompletionServiceError,
    ConfigurationError,
    CredentialsExhausted,
    GatewayException,
    NoCredentialsConfigured,
    ParseError,
    RateLimited,
    StoreUnavailable,
)
from llm_gateway.extraction import extract_json_array, extract_json_object
from llm_gateway.fingerprint import fingerprint
from llm_gateway.gateway import Gateway, get_gateway, invoke
from llm_gateway.models import FAST_MODEL, SMART_MODEL, ChatMessage, ChatRequest

__version__ = "1.0.0"

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "CompletionServiceError",
    "ConfigurationError",
    "CredentialsExhausted",
    "FAST_MODEL",
    "Gateway",
    "GatewayException",
    "NoCredentialsConfigured",
    "ParseError",
    "RateLimited",
    "SMART_MODEL",
    "StoreUnavailable",
    "extract_json_array",
    "extract_json_object",
    "fingerprint",
    "get_gateway",
    "invoke",
]
