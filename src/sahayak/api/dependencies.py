"""
FastAPI dependencies resolving the adapters held on ``app.state``.
"""

from fastapi import HTTPException, Request, status

from sahayak.api.schemas import UserDocuments
from sahayak.assistant.text_adapter import TextGenerationAdapter
from sahayak.health.context import HealthContextCache, get_user_health_context
from sahayak.health.models import HealthContext
from sahayak.voice.adapter import VoiceSessionAdapter


def get_text_adapter(request: Request) -> TextGenerationAdapter:
    """Dependency for the text generation adapter."""
    adapter = getattr(request.app.state, "text_adapter", None)
    if adapter is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "code": "TEXT_ASSISTANT_UNAVAILABLE",
                "message": "Text assistant is not configured",
            },
        )
    return adapter


def get_voice_adapter(request: Request) -> VoiceSessionAdapter:
    """Dependency for the voice session adapter."""
    adapter = getattr(request.app.state, "voice_adapter", None)
    if adapter is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "code": "VOICE_ASSISTANT_UNAVAILABLE",
                "message": "Voice assistant is not configured",
            },
        )
    return adapter


def get_context_cache(request: Request) -> HealthContextCache:
    """Dependency for the per-process health context cache."""
    return request.app.state.health_context_cache


def resolve_context(
    explicit: HealthContext | None,
    documents: UserDocuments | None,
    cache: HealthContextCache,
) -> HealthContext | None:
    """Context for a request: the explicit one, else one built from documents."""
    if explicit is not None or documents is None:
        return explicit
    return get_user_health_context(
        documents.user,
        documents.profile,
        documents.conversations,
        cache=cache,
    )
