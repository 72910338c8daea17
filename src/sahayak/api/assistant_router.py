"""
Text assistant API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from sahayak.api.dependencies import get_context_cache, get_text_adapter, resolve_context
from sahayak.api.schemas import (
    ChatRequest,
    ErrorResponse,
    InvocationResponse,
    SymptomsRequest,
    TipsRequest,
)
from sahayak.assistant.text_adapter import TextGenerationAdapter
from sahayak.health.context import HealthContextCache
from sahayak.shared.logging import get_logger
from sahayak.shared.results import InvocationResult

logger = get_logger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    503: {"model": ErrorResponse, "description": "Assistant not configured"},
}


def to_response(result: InvocationResult) -> InvocationResponse:
    # raw_error stays server side; it can echo provider internals.
    return InvocationResponse.model_validate(result.model_dump(exclude={"raw_error"}))


@router.post("/chat", response_model=InvocationResponse, responses=ERROR_RESPONSES)
async def chat(
    body: ChatRequest,
    adapter: Annotated[TextGenerationAdapter, Depends(get_text_adapter)],
    cache: Annotated[HealthContextCache, Depends(get_context_cache)],
) -> InvocationResponse:
    """Answer a health question.

    Provider failures are not HTTP errors: the response carries
    ``success=false`` and a localized fallback answer.
    """
    context = resolve_context(body.context, body.user_documents, cache)
    result = await adapter.generate_response(body.message, context, body.language)
    return to_response(result)


@router.post("/tips", response_model=InvocationResponse, responses=ERROR_RESPONSES)
async def tips(
    body: TipsRequest,
    adapter: Annotated[TextGenerationAdapter, Depends(get_text_adapter)],
) -> InvocationResponse:
    result = await adapter.generate_tips(body.profile, body.language)
    return to_response(result)


@router.post("/symptoms", response_model=InvocationResponse, responses=ERROR_RESPONSES)
async def symptoms(
    body: SymptomsRequest,
    adapter: Annotated[TextGenerationAdapter, Depends(get_text_adapter)],
) -> InvocationResponse:
    result = await adapter.analyze_symptoms(body.symptoms, body.profile, body.language)
    return to_response(result)
