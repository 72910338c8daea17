"""
Shared fixtures: in-memory provider transports and sample health contexts.
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from sahayak.health.models import ConversationTurn, HealthContext, Lifestyle, UserProfile
from sahayak.shared.errors import Provider, ProviderError
from sahayak.shared.transport import ProviderResponse


class FakeTransport:
    """ProviderTransport double that records every request.

    Queued bodies are returned in order as 200 responses; a queued
    ProviderError is raised instead. With nothing queued, returns ``{}``.
    """

    def __init__(
        self,
        provider: Provider = Provider.GEMINI,
        has_credential: bool = True,
    ) -> None:
        self.provider = provider
        self.has_credential = has_credential
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self._queue: list[Any] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def queue(self, *items: Any) -> "FakeTransport":
        self._queue.extend(items)
        return self

    def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> ProviderResponse:
        self.calls.append((method, path, json))
        item = self._queue.pop(0) if self._queue else {}
        if isinstance(item, ProviderError):
            raise item
        if isinstance(item, ProviderResponse):
            return item
        return ProviderResponse(status_code=200, text=_dumps(item))


def _dumps(body: Any) -> str:
    return json.dumps(body, ensure_ascii=False)


def gemini_body(text: str, finish_reason: str = "STOP") -> dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": finish_reason,
            }
        ]
    }


@pytest.fixture
def gemini_transport() -> FakeTransport:
    return FakeTransport(provider=Provider.GEMINI)


@pytest.fixture
def vapi_transport() -> FakeTransport:
    return FakeTransport(provider=Provider.VAPI)


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        age=42,
        gender="female",
        conditions=["hypertension", "type 2 diabetes"],
        medications=["metformin"],
        allergies=["penicillin"],
        language="hi",
        lifestyle=Lifestyle(exercise_frequency="rarely", sleep_hours=6),
    )


@pytest.fixture
def health_context(profile: UserProfile) -> HealthContext:
    return HealthContext(
        user_profile=profile,
        conversation_history=[
            ConversationTurn(role="user", content="I feel tired after lunch"),
            ConversationTurn(role="assistant", content="Try a short walk after meals"),
        ],
        language="hi",
    )
