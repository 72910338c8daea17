"""
Vapi voice provider transport.
"""

from __future__ import annotations

from typing import Any

import httpx

from sahayak.shared.errors import (
    Provider,
    ProviderAuthenticationError,
    ProviderError,
    QuotaExceededError,
    TransportError,
)
from sahayak.shared.transport import HttpProviderTransport, ProviderResponse
from sahayak.voice.config import VoiceConfig

VAPI_API_BASE = "https://api.vapi.ai"


def describe_error_body(response: ProviderResponse) -> str:
    """Provider error detail: the JSON message when there is one, else the raw body."""
    body = response.json_or_none()
    if isinstance(body, dict):
        detail = body.get("message") or body.get("error")
        if isinstance(detail, list):
            detail = "; ".join(str(item) for item in detail)
        if detail:
            return str(detail)
    return response.text or "no response body"


class VapiTransport(HttpProviderTransport):
    """HTTP transport for the Vapi REST API (bearer authentication)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = VAPI_API_BASE,
        timeout_seconds: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(api_key, base_url, timeout_seconds, http_client)

    @classmethod
    def from_config(cls, config: VoiceConfig, http_client: httpx.Client | None = None) -> "VapiTransport":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            http_client=http_client,
        )

    @property
    def provider(self) -> Provider:
        return Provider.VAPI

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _error_for_status(self, response: ProviderResponse) -> ProviderError:
        detail = describe_error_body(response)
        body = response.json_or_none()
        common: dict[str, Any] = {
            "provider": self.provider,
            "status_code": response.status_code,
            "provider_response": body if isinstance(body, dict) else {"raw": response.text},
        }
        message = f"Vapi error {response.status_code} - {detail}"

        if response.status_code in (401, 403):
            return ProviderAuthenticationError(message, **common)
        if response.status_code == 429:
            return QuotaExceededError(message, **common)
        return TransportError(message, error_code=str(response.status_code), **common)
