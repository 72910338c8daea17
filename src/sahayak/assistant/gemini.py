"""
Gemini (Google Generative Language API) transport and request settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from sahayak.config import Settings
from sahayak.shared.errors import (
    MissingCredentialError,
    Provider,
    ProviderAuthenticationError,
    ProviderError,
    QuotaExceededError,
    TransportError,
)
from sahayak.shared.transport import HttpProviderTransport, ProviderResponse

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

AUTH_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}
AUTH_REASONS = {"API_KEY_INVALID", "API_KEY_EXPIRED"}
QUOTA_STATUSES = {"RESOURCE_EXHAUSTED"}


@dataclass(frozen=True)
class GenerationConfig:
    """Immutable generation parameters sent with every request."""

    model: str = "gemini-1.5-flash"
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 1024
    block_threshold: str = "BLOCK_MEDIUM_AND_ABOVE"
    harm_categories: tuple[str, ...] = field(default=HARM_CATEGORIES)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationConfig":
        return cls(
            model=settings.gemini_model,
            temperature=settings.gemini_temperature,
            top_k=settings.gemini_top_k,
            top_p=settings.gemini_top_p,
            max_output_tokens=settings.gemini_max_output_tokens,
        )

    @property
    def endpoint_path(self) -> str:
        return f"models/{self.model}:generateContent"

    def build_payload(self, prompt: str) -> dict[str, Any]:
        """generateContent request body for a single-turn prompt."""
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topK": self.top_k,
                "topP": self.top_p,
                "maxOutputTokens": self.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": self.block_threshold}
                for category in self.harm_categories
            ],
        }


class GeminiTransport(HttpProviderTransport):
    """HTTP transport for the Gemini REST API.

    The API key is mandatory: construction fails fast without one.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = GEMINI_API_BASE,
        timeout_seconds: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise MissingCredentialError(
                "GEMINI_API_KEY is required in environment variables",
                provider=Provider.GEMINI,
            )
        super().__init__(api_key, base_url, timeout_seconds, http_client)

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.Client | None = None) -> "GeminiTransport":
        return cls(
            api_key=settings.gemini_api_key,
            base_url=settings.gemini_base_url,
            timeout_seconds=settings.gemini_timeout_seconds,
            http_client=http_client,
        )

    @property
    def provider(self) -> Provider:
        return Provider.GEMINI

    def _auth_headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self._api_key}

    def _error_for_status(self, response: ProviderResponse) -> ProviderError:
        body = response.json_or_none()
        error = body.get("error", {}) if isinstance(body, dict) else {}
        if not isinstance(error, dict):
            error = {}

        status = str(error.get("status", ""))
        message = error.get("message") or response.text or "no response body"
        reasons = {
            detail.get("reason")
            for detail in error.get("details") or []
            if isinstance(detail, dict)
        }
        common: dict[str, Any] = {
            "provider": self.provider,
            "status_code": response.status_code,
            "provider_response": body if isinstance(body, dict) else {"raw": response.text},
        }

        if response.status_code in (401, 403) or status in AUTH_STATUSES or reasons & AUTH_REASONS:
            return ProviderAuthenticationError(
                f"Gemini rejected the API key: {message}",
                error_code=status or "AUTHENTICATION_FAILED",
                **common,
            )

        if response.status_code == 429 or status in QUOTA_STATUSES:
            return QuotaExceededError(
                f"Gemini quota exceeded: {message}",
                error_code=status or "QUOTA_EXCEEDED",
                **common,
            )

        return TransportError(
            f"Gemini API error {response.status_code}: {message}",
            error_code=status or str(response.status_code),
            **common,
        )
