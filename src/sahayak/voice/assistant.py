"""
Voice assistant prompt and configuration builders.

The prompt follows the same section order as text guidance (preamble, user
context, language directive) but is phrased for spoken delivery.
"""

from dataclasses import dataclass, field

from sahayak.health.languages import DEFAULT_LANGUAGE, resolve_language_name
from sahayak.health.models import HealthContext
from sahayak.voice.models import (
    AssistantConfig,
    AssistantModel,
    AssistantVoice,
    VoicemailDetection,
)

ASSISTANT_NAME = "Aarogya Sahayak Voice Assistant"

VOICE_SYSTEM_PROMPT = """You are Aarogya Sahayak, an AI-powered health assistant. You provide helpful, accurate health information while being empathetic and supportive.

IMPORTANT GUIDELINES:
1. Provide health information for educational purposes only
2. Never diagnose medical conditions
3. Always recommend consulting healthcare professionals for serious concerns
4. Be culturally sensitive and respectful
5. Focus on preventive care, lifestyle modifications, and general wellness
6. Ask clarifying questions when needed
7. Keep responses concise for voice interaction
8. Maintain a warm, supportive tone"""

VOICE_LANGUAGE_DIRECTIVE = (
    "IMPORTANT: Respond primarily in {language}. "
    "Use simple, clear language suitable for voice communication."
)

GREETINGS: dict[str, str] = {
    "en": "Hello! I'm Aarogya Sahayak, your AI health assistant. How can I help you with your health questions today?",
    "hi": "नमस्ते! मैं आरोग्य सहायक हूं, आपका AI स्वास्थ्य सहायक। आज मैं आपकी स्वास्थ्य संबंधी किसी भी जानकारी में कैसे सहायता कर सकता हूं?",
}

FAREWELLS: dict[str, str] = {
    "en": "Take care of your health. Have a great day!",
    "hi": "स्वास्थ्य की देखभाल करते रहें। धन्यवाद!",
}


@dataclass(frozen=True)
class AssistantDefaults:
    """Fixed base configuration merged into every assistant."""

    name: str = ASSISTANT_NAME
    model_provider: str = "openai"
    model_name: str = "gpt-3.5-turbo"
    model_temperature: float = 0.7
    model_max_tokens: int = 500
    voice_provider: str = "playht"
    voice_id: str = "jennifer"
    voice_speed: float = 1.0
    voice_temperature: float = 0.7
    recording_enabled: bool = True
    end_call_phrases: tuple[str, ...] = field(
        default=("goodbye", "bye", "end call", "thank you", "that's all", "धन्यवाद", "अलविदा")
    )
    max_duration_seconds: int = 600
    silence_timeout_seconds: int = 30
    response_delay_seconds: float = 0.4
    llm_request_delay_seconds: float = 0.1
    num_words_to_interrupt_assistant: int = 2
    background_sound: str = "office"
    voicemail_detection_timeout_ms: int = 5000


def build_assistant_prompt(context: HealthContext) -> str:
    """System message for the voice assistant."""
    sections = [VOICE_SYSTEM_PROMPT]

    profile = context.user_profile
    if profile is not None:
        lines = ["USER CONTEXT:"]
        if profile.age is not None:
            lines.append(f"- Age: {profile.age}")
        if profile.gender:
            lines.append(f"- Gender: {profile.gender}")
        if profile.conditions:
            lines.append(f"- Health Conditions: {', '.join(profile.conditions)}")
        if profile.language:
            lines.append(f"- Preferred Language: {profile.language}")
        sections.append("\n".join(lines))

    # Unmapped codes still get a directive, naming the default language.
    if context.language and context.language != DEFAULT_LANGUAGE:
        sections.append(
            VOICE_LANGUAGE_DIRECTIVE.format(language=resolve_language_name(context.language))
        )

    return "\n\n".join(sections)


def greeting_for(language_code: str | None) -> str:
    return GREETINGS.get(language_code or DEFAULT_LANGUAGE, GREETINGS[DEFAULT_LANGUAGE])


def farewell_for(language_code: str | None) -> str:
    return FAREWELLS.get(language_code or DEFAULT_LANGUAGE, FAREWELLS[DEFAULT_LANGUAGE])


def build_assistant_config(
    context: HealthContext,
    defaults: AssistantDefaults | None = None,
) -> AssistantConfig:
    """Merge the fixed defaults with a context-specific prompt and greeting."""
    defaults = defaults or AssistantDefaults()

    return AssistantConfig(
        name=defaults.name,
        first_message=greeting_for(context.language),
        end_call_message=farewell_for(context.language),
        model=AssistantModel(
            provider=defaults.model_provider,
            model=defaults.model_name,
            temperature=defaults.model_temperature,
            max_tokens=defaults.model_max_tokens,
            system_message=build_assistant_prompt(context),
        ),
        voice=AssistantVoice(
            provider=defaults.voice_provider,
            voice_id=defaults.voice_id,
            speed=defaults.voice_speed,
            temperature=defaults.voice_temperature,
        ),
        recording_enabled=defaults.recording_enabled,
        end_call_phrases=list(defaults.end_call_phrases),
        max_duration_seconds=defaults.max_duration_seconds,
        silence_timeout_seconds=defaults.silence_timeout_seconds,
        response_delay_seconds=defaults.response_delay_seconds,
        llm_request_delay_seconds=defaults.llm_request_delay_seconds,
        num_words_to_interrupt_assistant=defaults.num_words_to_interrupt_assistant,
        background_sound=defaults.background_sound,
        voicemail_detection=VoicemailDetection(
            enabled=True,
            machine_detection_timeout=defaults.voicemail_detection_timeout_ms,
        ),
    )
