"""
LLM gateway exception hierarchy.

All custom exceptions inherit from GatewayException so callers can
catch a single base type when they want a broad safety net.
"""

from typing import Optional


class GatewayException(Exception):
    """Base exception for all gateway errors."""


class ConfigurationError(GatewayException, ValueError):
    """Raised when configuration is invalid or cannot be loaded."""


class StoreUnavailable(GatewayException):
    """Raised when the cache backend is unconfigured or unreachable."""


class NoCredentialsConfigured(GatewayException, ValueError):
    """Raised when the completion-service key pool is empty."""


class CompletionServiceError(GatewayException):
    """Raised when a completion call fails.

    Attributes:
        status_code: HTTP-style status reported by the service, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimited(CompletionServiceError):
    """Raised when a credential has exhausted its quota or throughput."""


class CredentialsExhausted(GatewayException):
    """Raised when every credential was tried and none produced a result."""


class ParseError(GatewayException, ValueError):
    """Raised when no JSON value can be recovered from completion text."""
