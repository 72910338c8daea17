"""
Voice session, assistant configuration and lifecycle event models.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SessionStatus(str, Enum):
    """Session statuses reported by the provider.

    Statuses are relayed as reported; the adapter never enforces transitions.
    ``ended`` is reachable from any state.
    """

    QUEUED = "queued"
    RINGING = "ringing"
    CONNECTING = "connecting"
    IN_PROGRESS = "in-progress"
    FORWARDING = "forwarding"
    ENDED = "ended"


class LifecycleEventType(str, Enum):
    """Webhook event kinds with a dedicated handler."""

    CALL_START = "call-start"
    CALL_END = "call-end"
    SPEECH_START = "speech-start"
    SPEECH_END = "speech-end"
    TRANSCRIPT = "transcript"
    FUNCTION_CALL = "function-call"


class VoiceSession(BaseModel):
    """A voice session created by the provider."""

    call_id: str
    status: str | None = None
    web_rtc_url: str | None = None
    token: str | None = None
    assistant_id: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def is_ended(self) -> bool:
        return self.status == SessionStatus.ENDED.value


class Recording(BaseModel):
    recording_url: str | None = None
    transcript: str | None = None
    duration: float | None = None

    model_config = {"frozen": True}


class LifecycleEventOutcome(BaseModel):
    """Result of handling one webhook lifecycle event."""

    success: bool
    event_type: str | None = None
    processed: bool = False
    error: str | None = None


class _VendorDocument(BaseModel):
    """Serialized with camelCase keys, the provider's document format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_vendor(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class AssistantModel(_VendorDocument):
    provider: str = "openai"
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 500
    system_message: str = ""


class AssistantVoice(_VendorDocument):
    provider: str = "playht"
    voice_id: str = "jennifer"
    speed: float = 1.0
    temperature: float = 0.7


class VoicemailDetection(_VendorDocument):
    enabled: bool = True
    machine_detection_timeout: int = 5000


class AssistantConfig(_VendorDocument):
    """Assistant document sent to the provider when a session starts."""

    name: str
    first_message: str
    model: AssistantModel
    voice: AssistantVoice
    recording_enabled: bool = True
    end_call_message: str
    end_call_phrases: list[str] = Field(default_factory=list)
    max_duration_seconds: int = 600
    silence_timeout_seconds: int = 30
    response_delay_seconds: float | None = None
    llm_request_delay_seconds: float | None = None
    num_words_to_interrupt_assistant: int | None = None
    background_sound: str | None = None
    voicemail_detection: VoicemailDetection | None = None
