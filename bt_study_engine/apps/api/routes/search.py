"""Scope-aware resource search endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bt_study_engine.apps.api.dependencies import get_tool_dispatcher
from bt_study_engine.core.api_models import SearchRequest, SearchResponse
from bt_study_engine.core.logging import get_logger
from bt_study_engine.services.resource_links import PresentationPolicy, present
from bt_study_engine.services.tool_dispatch import ToolDispatcher

router = APIRouter(prefix="/api/v1", tags=["search"])
logger = get_logger(__name__)


@router.post("/search", response_model=SearchResponse)
async def search(
    payload: SearchRequest,
    dispatcher: ToolDispatcher = Depends(get_tool_dispatcher),
) -> SearchResponse:
    """Run one aggregated search and render it under the requested presentation policy."""
    result = await dispatcher.aggregator.aggregate(
        payload.query,
        payload.scope,
        payload.resource_types,
        payload.prefs,
    )
    if result is None:
        return SearchResponse()
    messages = present(result, PresentationPolicy(payload.policy))
    logger.info("[api] search %r produced %d message(s)", payload.query, len(messages))
    return SearchResponse(
        search=result,
        messages=[message.model_dump(by_alias=True) for message in messages],
    )


__all__ = ["router"]
