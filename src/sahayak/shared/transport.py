"""
Provider transport interface.

Both adapters talk to their vendor through a ProviderTransport. The transport
owns HTTP, authentication headers and error classification; the adapters own
prompt assembly and response normalization, so they can be exercised with an
in-memory fake transport.
"""

from __future__ import annotations

import json as jsonlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx

from sahayak.shared.errors import (
    MalformedResponseError,
    Provider,
    ProviderError,
    TransportError,
)
from sahayak.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProviderResponse:
    """Raw provider response, body kept as text."""

    status_code: int
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Parse the body as JSON.

        An empty body parses to an empty dict.

        Raises:
            MalformedResponseError: If the body is not valid JSON.
        """
        if not self.text.strip():
            return {}
        try:
            return jsonlib.loads(self.text)
        except ValueError as e:
            raise MalformedResponseError(
                f"Response body is not valid JSON: {self.text[:200]}",
                status_code=self.status_code,
                original_error=e,
            ) from e

    def json_or_none(self) -> Any:
        """Parse the body as JSON, returning None when it is not JSON."""
        try:
            return self.json()
        except MalformedResponseError:
            return None


@runtime_checkable
class ProviderTransport(Protocol):
    """Capability interface shared by the Gemini and Vapi transports."""

    @property
    def provider(self) -> Provider:
        """The provider this transport talks to."""
        ...

    @property
    def has_credential(self) -> bool:
        """Whether an API credential is configured."""
        ...

    def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> ProviderResponse:
        """Send one request to the provider.

        Returns:
            The 2xx response.

        Raises:
            ProviderError: Typed error for network failures and non-2xx responses.
        """
        ...


class HttpProviderTransport(ABC):
    """httpx-backed base transport.

    A single attempt is made per request; there is no retry loop. The
    httpx client is created lazily unless one is injected.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    @abstractmethod
    def provider(self) -> Provider:
        raise NotImplementedError

    @property
    def has_credential(self) -> bool:
        return bool(self._api_key)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=httpx.Timeout(self._timeout_seconds))
        return self._http_client

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    @abstractmethod
    def _auth_headers(self) -> dict[str, str]:
        """Headers that authenticate a request."""
        raise NotImplementedError

    @abstractmethod
    def _error_for_status(self, response: ProviderResponse) -> ProviderError:
        """Map a non-2xx response to a typed error."""
        raise NotImplementedError

    def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> ProviderResponse:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {"Content-Type": "application/json", **self._auth_headers()}

        logger.debug(
            "Provider request",
            extra={"provider": self.provider.value, "method": method, "path": path},
        )

        try:
            response = self._get_client().request(method, url, json=json, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(
                "Provider request timed out",
                extra={"provider": self.provider.value, "path": path},
            )
            raise TransportError(
                f"{self.provider.value} request timed out after {self._timeout_seconds}s",
                provider=self.provider,
                error_code="TIMEOUT",
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "Provider request failed",
                extra={"provider": self.provider.value, "path": path, "error": str(e)},
            )
            raise TransportError(
                f"{self.provider.value} request failed: {e!s}",
                provider=self.provider,
                error_code="HTTP_ERROR",
                original_error=e,
            ) from e

        # Body is read as text first so non-JSON error pages can be reported verbatim.
        result = ProviderResponse(status_code=response.status_code, text=response.text)
        if not result.ok:
            error = self._error_for_status(result)
            logger.error(
                "Provider returned an error status",
                extra={
                    "provider": self.provider.value,
                    "path": path,
                    "status_code": result.status_code,
                    "error_code": error.error_code,
                },
            )
            raise error
        return result
