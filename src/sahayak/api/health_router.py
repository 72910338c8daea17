"""
Health context API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from sahayak.api.dependencies import get_context_cache
from sahayak.api.schemas import HealthInsightsRequest, HealthInsightsResponse
from sahayak.health.context import (
    HealthContextCache,
    analyze_recent_health_records,
    generate_health_insights,
    get_user_health_context,
    latest_vitals,
)
from sahayak.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

ContextCache = Annotated[HealthContextCache, Depends(get_context_cache)]


@router.post("/insights", response_model=HealthInsightsResponse)
async def health_insights(body: HealthInsightsRequest, cache: ContextCache) -> HealthInsightsResponse:
    """Derive the user's context, analyze recent records and list insights."""
    context = get_user_health_context(body.user, body.profile, body.conversations, cache=cache)
    analysis = analyze_recent_health_records(body.records)
    insights = generate_health_insights(context, latest_vitals(body.records))

    logger.info(
        "Health insights generated",
        extra={"record_count": analysis.record_count, "insight_count": len(insights)},
    )
    return HealthInsightsResponse(context=context, analysis=analysis, insights=insights)


@router.delete("/context/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_context(user_id: str, cache: ContextCache) -> None:
    """Drop a cached context after the user's documents change."""
    cache.invalidate(user_id)
    logger.info("Health context invalidated", extra={"user_id": user_id})
