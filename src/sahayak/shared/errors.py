"""
Error taxonomy shared by the provider adapters.

Transports raise these typed errors, classified from HTTP status and the
provider's structured error codes. Adapters convert all of them into failure
results, except InvalidInputError and MissingCredentialError which are raised
to the caller before any network I/O.
"""

from enum import Enum
from typing import Any


class Provider(str, Enum):
    """External providers the adapters talk to."""

    GEMINI = "gemini"
    VAPI = "vapi"


class ProviderError(Exception):
    """Base exception for provider adapter errors."""

    default_code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        provider: Provider | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
        provider_response: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.error_code = error_code or self.default_code
        self.status_code = status_code
        self.provider_response = provider_response or {}
        self.original_error = original_error


class InvalidInputError(ProviderError):
    """Caller input rejected before any network call."""

    default_code = "INVALID_INPUT"


class MissingCredentialError(ProviderError):
    """Provider credential is not configured."""

    default_code = "MISSING_CREDENTIAL"


class ContentBlockedError(ProviderError):
    """Provider safety filter blocked the prompt or the response."""

    default_code = "CONTENT_BLOCKED"

    def __init__(
        self,
        message: str,
        block_reason: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.block_reason = block_reason


class QuotaExceededError(ProviderError):
    """Provider reported a quota or rate limit."""

    default_code = "QUOTA_EXCEEDED"

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ProviderAuthenticationError(ProviderError):
    """Provider rejected the configured credential."""

    default_code = "AUTHENTICATION_FAILED"


class TransportError(ProviderError):
    """Non-2xx HTTP response or network failure."""

    default_code = "TRANSPORT_ERROR"


class MalformedResponseError(ProviderError):
    """2xx response that is missing required fields or is not parseable."""

    default_code = "MALFORMED_RESPONSE"
