"""
Voice session API router and provider webhook endpoint.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from sahayak.api.assistant_router import ERROR_RESPONSES, to_response
from sahayak.api.dependencies import get_context_cache, get_voice_adapter, resolve_context
from sahayak.api.schemas import InvocationResponse, PhoneCallRequest, VoiceSessionRequest
from sahayak.health.context import HealthContextCache
from sahayak.shared.logging import get_logger
from sahayak.voice.adapter import VoiceSessionAdapter
from sahayak.voice.models import LifecycleEventOutcome

logger = get_logger(__name__)

router = APIRouter(prefix="/api/voice", tags=["voice"])
webhook_router = APIRouter(prefix="/webhooks/voice", tags=["webhooks"])

VoiceAdapter = Annotated[VoiceSessionAdapter, Depends(get_voice_adapter)]
ContextCache = Annotated[HealthContextCache, Depends(get_context_cache)]


@router.post("/sessions", response_model=InvocationResponse, responses=ERROR_RESPONSES)
async def start_session(
    body: VoiceSessionRequest, adapter: VoiceAdapter, cache: ContextCache
) -> InvocationResponse:
    """Start a browser voice session for the caller's context."""
    context = resolve_context(body.context, body.user_documents, cache)
    result = await adapter.start_session(context)
    return to_response(result)


@router.post("/calls", response_model=InvocationResponse, responses=ERROR_RESPONSES)
async def start_phone_call(
    body: PhoneCallRequest, adapter: VoiceAdapter, cache: ContextCache
) -> InvocationResponse:
    context = resolve_context(body.context, body.user_documents, cache)
    result = await adapter.start_phone_session(body.phone_number, context, body.assistant_id)
    return to_response(result)


@router.get("/sessions/{call_id}", response_model=InvocationResponse, responses=ERROR_RESPONSES)
async def get_session(call_id: str, adapter: VoiceAdapter) -> InvocationResponse:
    result = await adapter.get_session(call_id)
    return to_response(result)


@router.delete("/sessions/{call_id}", response_model=InvocationResponse, responses=ERROR_RESPONSES)
async def end_session(call_id: str, adapter: VoiceAdapter) -> InvocationResponse:
    result = await adapter.end_session(call_id)
    return to_response(result)


@router.get(
    "/sessions/{call_id}/recording",
    response_model=InvocationResponse,
    responses=ERROR_RESPONSES,
)
async def fetch_recording(call_id: str, adapter: VoiceAdapter) -> InvocationResponse:
    result = await adapter.fetch_recording(call_id)
    return to_response(result)


@webhook_router.post("/events", response_model=LifecycleEventOutcome)
async def voice_events(request: Request) -> LifecycleEventOutcome:
    """Receive provider lifecycle events.

    Always answers 200 so the provider does not retry; processing problems
    are reported in the body.
    """
    adapter: VoiceSessionAdapter | None = getattr(request.app.state, "voice_adapter", None)
    if adapter is None:
        logger.warning("Voice webhook received but voice assistant is not configured")
        return LifecycleEventOutcome(success=False, error="Voice assistant is not configured")

    try:
        event = await request.json()
    except ValueError:
        logger.warning("Voice webhook body is not JSON")
        event = {}

    if not isinstance(event, dict):
        event = {}

    return adapter.handle_lifecycle_event(event)
