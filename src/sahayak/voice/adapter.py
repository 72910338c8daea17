"""
Voice session adapter.

Builds assistant configurations from a HealthContext, starts, queries and
ends voice sessions with the provider, and handles lifecycle webhook events.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable

import anyio

from sahayak.health.languages import DEFAULT_LANGUAGE
from sahayak.health.models import HealthContext
from sahayak.shared.errors import (
    InvalidInputError,
    MalformedResponseError,
    MissingCredentialError,
    Provider,
    ProviderError,
)
from sahayak.shared.logging import get_logger
from sahayak.shared.results import InvocationResult
from sahayak.shared.transport import ProviderTransport
from sahayak.voice.assistant import (
    AssistantDefaults,
    build_assistant_config,
    build_assistant_prompt,
)
from sahayak.voice.models import (
    AssistantConfig,
    LifecycleEventOutcome,
    LifecycleEventType,
    Recording,
    VoiceSession,
)

logger = get_logger(__name__)

VOICE_FALLBACKS: dict[str, str] = {
    "en": "The voice assistant is unavailable right now. Please try again shortly or continue in the text chat.",
    "hi": "वॉइस सहायक अभी उपलब्ध नहीं है। कृपया थोड़ी देर बाद पुनः प्रयास करें या टेक्स्ट चैट में जारी रखें।",
}


def get_voice_fallback(language_code: str | None) -> str:
    return VOICE_FALLBACKS.get(language_code or DEFAULT_LANGUAGE, VOICE_FALLBACKS[DEFAULT_LANGUAGE])


def _coerce_context(context: HealthContext | Mapping[str, Any] | None) -> HealthContext:
    if context is None:
        return HealthContext()
    if isinstance(context, HealthContext):
        return context
    return HealthContext.model_validate(context)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VoiceSessionAdapter:
    """Voice-call provider adapter.

    Holds only immutable configuration; every operation is one round trip.
    Provider failures come back as failed InvocationResults whose message
    embeds the provider status and detail.
    """

    def __init__(
        self,
        transport: ProviderTransport,
        defaults: AssistantDefaults | None = None,
        source_tag: str = "aarogya_sahayak",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._transport = transport
        self._defaults = defaults or AssistantDefaults()
        self._source_tag = source_tag
        self._clock = clock
        self._event_handlers: dict[str, Callable[[Mapping[str, Any], Mapping[str, Any]], None]] = {
            LifecycleEventType.CALL_START.value: self._on_call_start,
            LifecycleEventType.CALL_END.value: self._on_call_end,
            LifecycleEventType.SPEECH_START.value: self._on_speech_start,
            LifecycleEventType.SPEECH_END.value: self._on_speech_end,
            LifecycleEventType.TRANSCRIPT.value: self._on_transcript,
            LifecycleEventType.FUNCTION_CALL.value: self._on_function_call,
        }

    @property
    def provider(self) -> Provider:
        return self._transport.provider

    @property
    def transport(self) -> ProviderTransport:
        return self._transport

    # --- configuration ---

    def build_assistant_prompt(self, context: HealthContext | Mapping[str, Any] | None) -> str:
        return build_assistant_prompt(_coerce_context(context))

    def build_assistant_config(self, context: HealthContext | Mapping[str, Any] | None) -> AssistantConfig:
        return build_assistant_config(_coerce_context(context), self._defaults)

    # --- guards ---

    def _require_credential(self) -> None:
        if not self._transport.has_credential:
            raise MissingCredentialError(
                "VAPI_API_KEY is not configured",
                provider=self.provider,
            )

    def _require_call_id(self, call_id: str) -> str:
        if not isinstance(call_id, str) or not call_id.strip():
            raise InvalidInputError("call_id is required", provider=self.provider)
        return call_id.strip()

    def _failure(self, error: ProviderError, operation: str, language_code: str | None) -> InvocationResult:
        logger.warning(
            "Voice provider operation failed",
            extra={
                "provider": self.provider.value,
                "operation": operation,
                "error_code": error.error_code,
                "status_code": error.status_code,
            },
        )
        return InvocationResult.from_error(error, fallback=get_voice_fallback(language_code))

    def _session_from(self, data: Any, call_id: str | None = None) -> VoiceSession:
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Invalid response: expected a JSON object",
                provider=self.provider,
            )
        session_id = data.get("id") or call_id
        if not session_id:
            raise MalformedResponseError(
                "Invalid response: missing call ID",
                provider=self.provider,
                provider_response=data,
            )
        return VoiceSession(
            call_id=str(session_id),
            status=data.get("status"),
            web_rtc_url=data.get("webCallUrl") or data.get("webRtcUrl") or data.get("webRTCUrl"),
            token=data.get("token"),
            assistant_id=data.get("assistantId"),
            raw=data,
        )

    # --- assistants ---

    def create_assistant_sync(self, context: HealthContext | Mapping[str, Any] | None = None) -> InvocationResult:
        """Register a reusable assistant; the payload is its id."""
        self._require_credential()
        ctx = _coerce_context(context)
        try:
            response = self._transport.request(
                "POST",
                "/assistant",
                json=self.build_assistant_config(ctx).to_vendor(),
            )
            data = response.json()
            assistant_id = data.get("id") if isinstance(data, dict) else None
            if not assistant_id:
                raise MalformedResponseError(
                    "Invalid response: missing assistant ID",
                    provider=self.provider,
                )
        except ProviderError as e:
            return self._failure(e, "create_assistant", ctx.language)

        logger.info("Voice assistant created", extra={"assistant_id": assistant_id})
        return InvocationResult.ok(str(assistant_id))

    async def create_assistant(self, context: HealthContext | Mapping[str, Any] | None = None) -> InvocationResult:
        return await anyio.to_thread.run_sync(self.create_assistant_sync, context)

    # --- sessions ---

    def start_session_sync(self, context: HealthContext | Mapping[str, Any] | None = None) -> InvocationResult:
        """Create an assistant and a browser (WebRTC) call in one request.

        Raises:
            MissingCredentialError: If no API key is configured. Raised before
                any request is built.
        """
        self._require_credential()
        ctx = _coerce_context(context)

        payload = {
            "assistant": self.build_assistant_config(ctx).to_vendor(),
            "type": "webCall",
            "metadata": {
                "source": self._source_tag,
                "timestamp": self._clock().isoformat(),
                "language": ctx.language or DEFAULT_LANGUAGE,
            },
        }

        logger.info(
            "Starting voice session",
            extra={"provider": self.provider.value, "language": ctx.language},
        )

        try:
            response = self._transport.request("POST", "/call/web", json=payload)
            session = self._session_from(response.json())
        except ProviderError as e:
            return self._failure(e, "start_session", ctx.language)

        logger.info(
            "Voice session started",
            extra={"call_id": session.call_id, "status": session.status},
        )
        return InvocationResult.ok(session)

    async def start_session(self, context: HealthContext | Mapping[str, Any] | None = None) -> InvocationResult:
        return await anyio.to_thread.run_sync(self.start_session_sync, context)

    def start_phone_session_sync(
        self,
        phone_number: str | None = None,
        context: HealthContext | Mapping[str, Any] | None = None,
        assistant_id: str | None = None,
    ) -> InvocationResult:
        """Start a phone call, with a stored assistant or an inline one."""
        self._require_credential()
        ctx = _coerce_context(context)

        payload: dict[str, Any] = {
            "assistant": {"id": assistant_id}
            if assistant_id
            else self.build_assistant_config(ctx).to_vendor(),
        }
        if phone_number:
            payload["customer"] = {"number": phone_number}

        try:
            response = self._transport.request("POST", "/call", json=payload)
            session = self._session_from(response.json())
        except ProviderError as e:
            return self._failure(e, "start_phone_session", ctx.language)

        logger.info(
            "Phone session started",
            extra={"call_id": session.call_id, "status": session.status},
        )
        return InvocationResult.ok(session)

    async def start_phone_session(
        self,
        phone_number: str | None = None,
        context: HealthContext | Mapping[str, Any] | None = None,
        assistant_id: str | None = None,
    ) -> InvocationResult:
        return await anyio.to_thread.run_sync(
            self.start_phone_session_sync, phone_number, context, assistant_id
        )

    def get_session_sync(self, call_id: str) -> InvocationResult:
        """Current state of a session, status relayed as reported."""
        call_id = self._require_call_id(call_id)
        self._require_credential()
        try:
            response = self._transport.request("GET", f"/call/{call_id}")
            session = self._session_from(response.json(), call_id=call_id)
        except ProviderError as e:
            return self._failure(e, "get_session", DEFAULT_LANGUAGE)
        return InvocationResult.ok(session)

    async def get_session(self, call_id: str) -> InvocationResult:
        return await anyio.to_thread.run_sync(self.get_session_sync, call_id)

    def end_session_sync(self, call_id: str) -> InvocationResult:
        call_id = self._require_call_id(call_id)
        self._require_credential()
        try:
            response = self._transport.request("DELETE", f"/call/{call_id}")
            data = response.json()
        except ProviderError as e:
            return self._failure(e, "end_session", DEFAULT_LANGUAGE)

        raw = data if isinstance(data, dict) else {}
        logger.info("Voice session ended", extra={"call_id": call_id})
        return InvocationResult.ok(
            VoiceSession(call_id=call_id, status=raw.get("status") or "ended", raw=raw),
            message="Call ended successfully",
        )

    async def end_session(self, call_id: str) -> InvocationResult:
        return await anyio.to_thread.run_sync(self.end_session_sync, call_id)

    def fetch_recording_sync(self, call_id: str) -> InvocationResult:
        call_id = self._require_call_id(call_id)
        self._require_credential()
        try:
            response = self._transport.request("GET", f"/call/{call_id}/recording")
            data = response.json()
            if not isinstance(data, dict):
                raise MalformedResponseError(
                    "Invalid response: expected a JSON object",
                    provider=self.provider,
                )
        except ProviderError as e:
            return self._failure(e, "fetch_recording", DEFAULT_LANGUAGE)

        return InvocationResult.ok(
            Recording(
                recording_url=data.get("recordingUrl"),
                transcript=data.get("transcript"),
                duration=data.get("duration"),
            )
        )

    async def fetch_recording(self, call_id: str) -> InvocationResult:
        return await anyio.to_thread.run_sync(self.fetch_recording_sync, call_id)

    # --- lifecycle events ---

    def handle_lifecycle_event(self, event: Mapping[str, Any]) -> LifecycleEventOutcome:
        """Dispatch one webhook event.

        Unknown event types are accepted as processed no-ops. Never raises:
        webhook delivery is best effort and must not break the request.
        """
        event_type: str | None = None
        try:
            raw_type = event.get("type")
            event_type = None if raw_type is None else str(raw_type)
            call = event.get("call") or {}
            message = event.get("message") or {}

            handler = self._event_handlers.get(event_type or "")
            if handler is None:
                logger.info("Unknown voice webhook event", extra={"event_type": event_type})
            else:
                handler(call, message)

            return LifecycleEventOutcome(success=True, event_type=event_type, processed=True)
        except Exception as e:
            logger.exception(
                "Voice webhook processing error",
                extra={"event_type": event_type},
            )
            return LifecycleEventOutcome(success=False, event_type=event_type, error=str(e))

    def _on_call_start(self, call: Mapping[str, Any], message: Mapping[str, Any]) -> None:
        logger.info("Voice call started", extra={"call_id": call.get("id")})

    def _on_call_end(self, call: Mapping[str, Any], message: Mapping[str, Any]) -> None:
        logger.info(
            "Voice call ended",
            extra={"call_id": call.get("id"), "duration_seconds": call.get("duration")},
        )

    def _on_speech_start(self, call: Mapping[str, Any], message: Mapping[str, Any]) -> None:
        logger.info("User started speaking", extra={"call_id": call.get("id")})

    def _on_speech_end(self, call: Mapping[str, Any], message: Mapping[str, Any]) -> None:
        logger.info("User stopped speaking", extra={"call_id": call.get("id")})

    def _on_transcript(self, call: Mapping[str, Any], message: Mapping[str, Any]) -> None:
        logger.info(
            "Transcript received",
            extra={
                "call_id": call.get("id"),
                "role": message.get("role"),
                "content_chars": len(message.get("content") or ""),
            },
        )

    def _on_function_call(self, call: Mapping[str, Any], message: Mapping[str, Any]) -> None:
        logger.info(
            "Function called",
            extra={"call_id": call.get("id"), "function": message["functionCall"]["name"]},
        )
