"""
AI provider error types.

Every provider error carries a ``ProviderErrorKind``. Callers switch on the
kind rather than on the class: the circuit breaker only cares whether a
failure is an authentication failure.
"""

from enum import Enum
from typing import Optional


class ProviderErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    OVERLOADED = "overloaded"
    INVALID_REQUEST = "invalid_request"
    NETWORK = "network"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


def classify_status(status_code: Optional[int]) -> ProviderErrorKind:
    if status_code in (401, 403):
        return ProviderErrorKind.AUTHENTICATION
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMIT
    if status_code in (503, 529):
        return ProviderErrorKind.OVERLOADED
    if status_code == 400:
        return ProviderErrorKind.INVALID_REQUEST
    return ProviderErrorKind.UNKNOWN


class AIProviderError(Exception):
    """Base error for a failed provider call."""

    default_kind = ProviderErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        provider: str,
        kind: Optional[ProviderErrorKind] = None,
        status_code: Optional[int] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.kind = kind or self.default_kind
        self.status_code = status_code
        self.original_error = original_error

    def __str__(self) -> str:
        return self.message


class AuthenticationError(AIProviderError):
    default_kind = ProviderErrorKind.AUTHENTICATION


class RateLimitError(AIProviderError):
    default_kind = ProviderErrorKind.RATE_LIMIT


class OverloadedError(AIProviderError):
    default_kind = ProviderErrorKind.OVERLOADED


class InvalidRequestError(AIProviderError):
    default_kind = ProviderErrorKind.INVALID_REQUEST


_ERROR_BY_KIND = {
    ProviderErrorKind.AUTHENTICATION: AuthenticationError,
    ProviderErrorKind.RATE_LIMIT: RateLimitError,
    ProviderErrorKind.OVERLOADED: OverloadedError,
    ProviderErrorKind.INVALID_REQUEST: InvalidRequestError,
}


def error_for_status(
    message: str,
    provider: str,
    status_code: Optional[int],
    original_error: Optional[BaseException] = None,
) -> AIProviderError:
    kind = classify_status(status_code)
    error_cls = _ERROR_BY_KIND.get(kind, AIProviderError)
    return error_cls(message, provider, kind=kind, status_code=status_code, original_error=original_error)


class MissingAPIKeyError(Exception):
    """No API key configured for the selected provider. Not retried."""

    def __init__(self, provider: str):
        super().__init__(f"API key not found for provider: {provider}")
        self.provider = provider


class AllProvidersFailedError(Exception):
    """Preferred and alternate providers both failed (or no alternate exists)."""

    def __init__(self, tier: str, last_error: Optional[BaseException]):
        detail = str(last_error) if last_error else "no provider available"
        super().__init__(f"All AI providers failed for tier {tier}: {detail}")
        self.tier = tier
        self.last_error = last_error


class CircuitOpenError(Exception):
    """A provider was skipped because its circuit is open. Never fed back to the breaker."""

    def __init__(self, provider: str, circuit_id: str):
        super().__init__(f"Provider {provider} skipped: circuit {circuit_id} is open")
        self.provider = provider
        self.circuit_id = circuit_id
