"""
Text generation adapter for health guidance.

Turns a user message and health context into a single Gemini request and
normalizes the outcome into an InvocationResult. The adapter keeps no state
between calls beyond its transport and generation settings.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import anyio

from sahayak.assistant.fallbacks import (
    SYMPTOM_FALLBACK,
    failure_message_for,
    get_fallback_response,
    get_fallback_tips,
)
from sahayak.assistant.gemini import GenerationConfig
from sahayak.assistant.prompts import (
    build_health_prompt,
    build_symptom_prompt,
    build_tips_prompt,
    split_tips,
)
from sahayak.health.languages import DEFAULT_LANGUAGE
from sahayak.health.models import HealthContext, UserProfile
from sahayak.shared.errors import (
    ContentBlockedError,
    InvalidInputError,
    MalformedResponseError,
    Provider,
    ProviderError,
)
from sahayak.shared.logging import get_logger
from sahayak.shared.results import InvocationResult
from sahayak.shared.transport import ProviderTransport

logger = get_logger(__name__)

# Candidate finish reasons that mean the provider withheld the answer.
BLOCKED_FINISH_REASONS = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}


@dataclass(frozen=True)
class Generation:
    """Text extracted from a provider response."""

    text: str
    finish_reason: str


def _coerce_context(context: HealthContext | Mapping[str, Any] | None) -> HealthContext:
    if context is None:
        return HealthContext()
    if isinstance(context, HealthContext):
        return context
    return HealthContext.model_validate(context)


def _coerce_profile(profile: UserProfile | Mapping[str, Any] | None) -> UserProfile | None:
    if profile is None or isinstance(profile, UserProfile):
        return profile
    return UserProfile.model_validate(profile)


class TextGenerationAdapter:
    """Generative-text adapter.

    Each operation calls the provider exactly once. Expected failures come
    back as ``InvocationResult(success=False)`` with a locale fallback;
    only invalid input is raised.
    """

    def __init__(
        self,
        transport: ProviderTransport,
        config: GenerationConfig | None = None,
    ) -> None:
        self._transport = transport
        self._config = config or GenerationConfig()

    @property
    def provider(self) -> Provider:
        return self._transport.provider

    @property
    def transport(self) -> ProviderTransport:
        return self._transport

    @property
    def config(self) -> GenerationConfig:
        return self._config

    # --- generate_response ---

    def generate_response_sync(
        self,
        user_message: str,
        context: HealthContext | Mapping[str, Any] | None = None,
        language_code: str = DEFAULT_LANGUAGE,
    ) -> InvocationResult:
        """Answer a health question using the caller's context.

        Raises:
            InvalidInputError: If ``user_message`` is empty or not a string.
        """
        if not isinstance(user_message, str) or not user_message.strip():
            raise InvalidInputError(
                "User message is required and must be a non-empty string",
                provider=self.provider,
            )

        prompt = build_health_prompt(user_message, _coerce_context(context), language_code)
        start_time = time.monotonic()

        try:
            generation = self._generate(prompt, operation="generate_response")
        except ProviderError as e:
            logger.warning(
                "Health response generation failed",
                extra={
                    "provider": self.provider.value,
                    "error_code": e.error_code,
                    "language": language_code,
                },
            )
            return InvocationResult.from_error(
                e,
                fallback=get_fallback_response(language_code),
                error_message=failure_message_for(e),
            )

        text = generation.text.strip()
        latency_ms = (time.monotonic() - start_time) * 1000
        logger.info(
            "Health response generated",
            extra={
                "provider": self.provider.value,
                "finish_reason": generation.finish_reason,
                "latency_ms": latency_ms,
            },
        )

        # Character counts stand in for tokens; no tokenizer is involved.
        return InvocationResult.ok(
            text,
            finish_reason=generation.finish_reason,
            model=self._config.model,
            latency_ms=latency_ms,
            usage={
                "prompt_tokens": len(prompt),
                "completion_tokens": len(text),
                "total_tokens": len(prompt) + len(text),
                "approximate": True,
            },
        )

    async def generate_response(
        self,
        user_message: str,
        context: HealthContext | Mapping[str, Any] | None = None,
        language_code: str = DEFAULT_LANGUAGE,
    ) -> InvocationResult:
        """Async wrapper running the sync call in a worker thread."""
        return await anyio.to_thread.run_sync(
            self.generate_response_sync, user_message, context, language_code
        )

    # --- generate_tips ---

    def generate_tips_sync(
        self,
        profile: UserProfile | Mapping[str, Any] | None = None,
        language_code: str = DEFAULT_LANGUAGE,
    ) -> InvocationResult:
        """Three personalized daily tips, one list entry per non-blank line."""
        prompt = build_tips_prompt(_coerce_profile(profile), language_code)

        try:
            generation = self._generate(prompt, operation="generate_tips")
        except ProviderError as e:
            logger.warning(
                "Health tips generation failed",
                extra={"provider": self.provider.value, "error_code": e.error_code},
            )
            return InvocationResult.from_error(e, fallback=get_fallback_tips(language_code))

        return InvocationResult.ok(
            split_tips(generation.text),
            finish_reason=generation.finish_reason,
        )

    async def generate_tips(
        self,
        profile: UserProfile | Mapping[str, Any] | None = None,
        language_code: str = DEFAULT_LANGUAGE,
    ) -> InvocationResult:
        return await anyio.to_thread.run_sync(self.generate_tips_sync, profile, language_code)

    # --- analyze_symptoms ---

    def analyze_symptoms_sync(
        self,
        symptoms: Sequence[str],
        profile: UserProfile | Mapping[str, Any] | None = None,
        language_code: str = DEFAULT_LANGUAGE,
    ) -> InvocationResult:
        """General information about symptoms, never a diagnosis.

        Raises:
            InvalidInputError: If no symptoms are given.
        """
        if isinstance(symptoms, str):
            symptoms = [symptoms]
        cleaned = [s.strip() for s in symptoms or [] if isinstance(s, str) and s.strip()]
        if not cleaned:
            raise InvalidInputError(
                "At least one symptom is required",
                provider=self.provider,
            )

        prompt = build_symptom_prompt(cleaned, _coerce_profile(profile), language_code)

        try:
            generation = self._generate(prompt, operation="analyze_symptoms")
        except ProviderError as e:
            logger.warning(
                "Symptom analysis failed",
                extra={"provider": self.provider.value, "error_code": e.error_code},
            )
            return InvocationResult.from_error(e, fallback=SYMPTOM_FALLBACK)

        return InvocationResult.ok(generation.text, finish_reason=generation.finish_reason)

    async def analyze_symptoms(
        self,
        symptoms: Sequence[str],
        profile: UserProfile | Mapping[str, Any] | None = None,
        language_code: str = DEFAULT_LANGUAGE,
    ) -> InvocationResult:
        return await anyio.to_thread.run_sync(
            self.analyze_symptoms_sync, symptoms, profile, language_code
        )

    # --- provider call ---

    def _generate(self, prompt: str, operation: str) -> Generation:
        logger.info(
            "Text generation request",
            extra={
                "provider": self.provider.value,
                "operation": operation,
                "model": self._config.model,
                "prompt_chars": len(prompt),
            },
        )
        response = self._transport.request(
            "POST",
            self._config.endpoint_path,
            json=self._config.build_payload(prompt),
        )
        return self._parse_generation(response.json())

    def _parse_generation(self, data: Any) -> Generation:
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Unexpected response shape from Gemini API",
                provider=self.provider,
            )

        feedback = data.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if block_reason:
            raise ContentBlockedError(
                f"Content blocked: {block_reason}",
                block_reason=block_reason,
                provider=self.provider,
                provider_response=data,
            )

        candidates = data.get("candidates") or []
        candidate = candidates[0] if candidates and isinstance(candidates[0], dict) else {}
        finish_reason = candidate.get("finishReason") or "STOP"

        if finish_reason in BLOCKED_FINISH_REASONS:
            raise ContentBlockedError(
                f"Content blocked: {finish_reason}",
                block_reason=finish_reason,
                provider=self.provider,
                provider_response=data,
            )

        content = candidate.get("content")
        parts = content.get("parts") or [] if isinstance(content, dict) else []
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))

        if not text.strip():
            raise MalformedResponseError(
                "Empty response from Gemini API",
                provider=self.provider,
                provider_response=data,
            )

        return Generation(text=text, finish_reason=finish_reason)
