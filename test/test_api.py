"""
Tests for the HTTP surface.

Adapters are injected with fake transports; no provider is contacted.
"""

from collections.abc import Iterator

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from conftest import FakeTransport, gemini_body
from sahayak.assistant.text_adapter import TextGenerationAdapter
from sahayak.config import Settings
from sahayak.main import create_app
from sahayak.shared.errors import Provider, QuotaExceededError
from sahayak.voice.adapter import VoiceSessionAdapter


@pytest.fixture
def settings() -> Settings:
    return Settings(gemini_api_key="", cors_origins="http://localhost:5173")


@pytest.fixture
def client(
    settings: Settings,
    gemini_transport: FakeTransport,
    vapi_transport: FakeTransport,
) -> Iterator[TestClient]:
    app = create_app(
        settings=settings,
        text_adapter=TextGenerationAdapter(gemini_transport),
        voice_adapter=VoiceSessionAdapter(vapi_transport),
    )
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "status": "healthy",
            "text_assistant": "enabled",
            "voice_assistant": "enabled",
        }

    def test_correlation_id_echoed(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Correlation-ID"] == "req-123"

    def test_correlation_id_generated(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.headers["X-Correlation-ID"]


class TestAssistantEndpoints:
    def test_chat_success(self, client: TestClient, gemini_transport: FakeTransport) -> None:
        gemini_transport.queue(gemini_body("Stay hydrated."))

        response = client.post(
            "/api/assistant/chat",
            json={"message": "Any advice?", "language": "hi", "context": {"language": "hi"}},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["payload"] == "Stay hydrated."
        assert data["metadata"]["usage"]["approximate"] is True
        assert "raw_error" not in data

    def test_chat_provider_failure_is_200_with_fallback(
        self, client: TestClient, gemini_transport: FakeTransport
    ) -> None:
        gemini_transport.queue(QuotaExceededError("quota", provider=Provider.GEMINI))

        response = client.post("/api/assistant/chat", json={"message": "hello"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is False
        assert data["error_message"] == "API quota exceeded"
        assert data["fallback"]

    def test_chat_blank_message_is_400(self, client: TestClient, gemini_transport: FakeTransport) -> None:
        response = client.post("/api/assistant/chat", json={"message": "  "})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["code"] == "INVALID_INPUT"
        assert gemini_transport.call_count == 0

    def test_chat_missing_field_is_422(self, client: TestClient) -> None:
        response = client.post("/api/assistant/chat", json={})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_tips(self, client: TestClient, gemini_transport: FakeTransport) -> None:
        gemini_transport.queue(gemini_body("1. Walk\n2. Sleep\n3. Eat"))

        response = client.post("/api/assistant/tips", json={"profile": {"age": 50}})

        assert response.json()["payload"] == ["1. Walk", "2. Sleep", "3. Eat"]

    def test_symptoms(self, client: TestClient, gemini_transport: FakeTransport) -> None:
        gemini_transport.queue(gemini_body("General info."))

        response = client.post("/api/assistant/symptoms", json={"symptoms": ["cough"]})

        assert response.json()["payload"] == "General info."

    def test_symptoms_empty_is_400(self, client: TestClient) -> None:
        response = client.post("/api/assistant/symptoms", json={"symptoms": []})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_text_assistant_unconfigured_is_503(
        self, settings: Settings, vapi_transport: FakeTransport
    ) -> None:
        app = create_app(settings=settings, voice_adapter=VoiceSessionAdapter(vapi_transport))

        with TestClient(app) as test_client:
            response = test_client.post("/api/assistant/chat", json={"message": "hello"})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["detail"]["code"] == "TEXT_ASSISTANT_UNAVAILABLE"


class TestVoiceEndpoints:
    def test_start_session(self, client: TestClient, vapi_transport: FakeTransport) -> None:
        vapi_transport.queue({"id": "call-1", "status": "queued", "webCallUrl": "https://web/call-1"})

        response = client.post("/api/voice/sessions", json={"context": {"language": "en"}})

        data = response.json()
        assert data["success"] is True
        assert data["payload"]["call_id"] == "call-1"
        assert data["payload"]["web_rtc_url"] == "https://web/call-1"

    def test_start_session_without_credential_is_503(
        self, settings: Settings, gemini_transport: FakeTransport
    ) -> None:
        transport = FakeTransport(provider=Provider.VAPI, has_credential=False)
        app = create_app(
            settings=settings,
            text_adapter=TextGenerationAdapter(gemini_transport),
            voice_adapter=VoiceSessionAdapter(transport),
        )

        with TestClient(app) as test_client:
            response = test_client.post("/api/voice/sessions", json={})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["detail"]["code"] == "MISSING_CREDENTIAL"
        assert transport.call_count == 0

    def test_phone_call(self, client: TestClient, vapi_transport: FakeTransport) -> None:
        vapi_transport.queue({"id": "call-2", "status": "ringing"})

        response = client.post(
            "/api/voice/calls",
            json={"phone_number": "+919800000000", "assistant_id": "asst-1"},
        )

        assert response.json()["payload"]["status"] == "ringing"
        assert vapi_transport.calls[0][2]["customer"] == {"number": "+919800000000"}

    def test_get_end_and_recording(self, client: TestClient, vapi_transport: FakeTransport) -> None:
        vapi_transport.queue(
            {"id": "call-3", "status": "in-progress"},
            {"id": "call-3", "status": "ended"},
            {"recordingUrl": "https://cdn/rec.wav"},
        )

        get_response = client.get("/api/voice/sessions/call-3")
        end_response = client.delete("/api/voice/sessions/call-3")
        recording_response = client.get("/api/voice/sessions/call-3/recording")

        assert get_response.json()["payload"]["status"] == "in-progress"
        assert end_response.json()["payload"]["status"] == "ended"
        assert recording_response.json()["payload"]["recording_url"] == "https://cdn/rec.wav"
        assert [call[0] for call in vapi_transport.calls] == ["GET", "DELETE", "GET"]


    def test_session_context_from_user_documents(self, client: TestClient, vapi_transport: FakeTransport) -> None:
        vapi_transport.queue({"id": "call-4"})

        client.post(
            "/api/voice/sessions",
            json={
                "user_documents": {
                    "user": {"id": "u2", "language": "hi"},
                    "profile": {"personal_info": {"gender": "male"}},
                }
            },
        )

        payload = vapi_transport.calls[0][2]
        assert payload["metadata"]["language"] == "hi"
        assert "- Gender: male" in payload["assistant"]["model"]["systemMessage"]

class TestVoiceWebhook:
    def test_unknown_event(self, client: TestClient) -> None:
        response = client.post(
            "/webhooks/voice/events",
            json={"type": "unknown-kind", "call": {}, "message": {}},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "success": True,
            "event_type": "unknown-kind",
            "processed": True,
            "error": None,
        }

    def test_known_event_missing_call_is_processed(self, client: TestClient) -> None:
        response = client.post("/webhooks/voice/events", json={"type": "call-start"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True

    def test_handler_failure_still_200(self, client: TestClient) -> None:
        response = client.post("/webhooks/voice/events", json={"type": "function-call", "message": {}})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is False

    def test_non_json_body(self, client: TestClient) -> None:
        response = client.post(
            "/webhooks/voice/events",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True


def _prompt(transport: FakeTransport, index: int) -> str:
    return transport.calls[index][2]["contents"][0]["parts"][0]["text"]


def _documents(gender: str) -> dict:
    return {
        "user": {"id": "u1", "date_of_birth": "1980-01-10"},
        "profile": {"personal_info": {"gender": gender}},
    }


class TestHealthContextEndpoints:
    def test_chat_builds_context_from_user_documents(
        self, client: TestClient, gemini_transport: FakeTransport
    ) -> None:
        gemini_transport.queue(gemini_body("ok"))

        response = client.post(
            "/api/assistant/chat",
            json={"message": "Any advice?", "user_documents": _documents("female")},
        )

        assert response.json()["success"] is True
        prompt = _prompt(gemini_transport, 0)
        assert "- Gender: female" in prompt
        assert "- Age:" in prompt

    def test_explicit_context_wins(self, client: TestClient, gemini_transport: FakeTransport) -> None:
        gemini_transport.queue(gemini_body("ok"))

        client.post(
            "/api/assistant/chat",
            json={
                "message": "hello",
                "context": {"user_profile": {"gender": "other"}},
                "user_documents": _documents("female"),
            },
        )

        assert "- Gender: other" in _prompt(gemini_transport, 0)

    def test_context_is_cached_until_invalidated(
        self, client: TestClient, gemini_transport: FakeTransport
    ) -> None:
        gemini_transport.queue(gemini_body("a"), gemini_body("b"), gemini_body("c"))

        client.post("/api/assistant/chat", json={"message": "q", "user_documents": _documents("female")})
        client.post("/api/assistant/chat", json={"message": "q", "user_documents": _documents("male")})
        delete_response = client.delete("/api/health/context/u1")
        client.post("/api/assistant/chat", json={"message": "q", "user_documents": _documents("male")})

        assert "- Gender: female" in _prompt(gemini_transport, 1)
        assert delete_response.status_code == status.HTTP_204_NO_CONTENT
        assert "- Gender: male" in _prompt(gemini_transport, 2)

    def test_insights(self, client: TestClient) -> None:
        response = client.post(
            "/api/health/insights",
            json={
                "user": {"id": "u9"},
                "profile": {
                    "lifestyle": {"exercise_frequency": "never", "sleep_hours": 5},
                    "current_medications": [{"name": "metformin"}],
                },
                "records": [
                    {"date": "2024-05-01", "vitals": {"bmi": 17, "weight": 60}},
                    {"date": "2024-06-01T08:00:00Z", "vitals": {"bmi": 27, "weight": 66}},
                ],
            },
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["context"]["user_profile"]["medications"] == ["metformin"]
        assert data["analysis"]["record_count"] == 2
        assert data["analysis"]["vital_trends"]["weight"]["trend"] == "increasing"
        assert [i["type"] for i in data["insights"]] == ["bmi", "exercise", "sleep", "medication"]
        assert "overweight" in data["insights"][0]["message"]
