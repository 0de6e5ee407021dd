"""Tool-call replay endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bt_study_engine.apps.api.dependencies import get_replayer
from bt_study_engine.core.api_models import ReplayRequest
from bt_study_engine.services.replay import ReplayResult, ToolCallReplayer

router = APIRouter(prefix="/api/v1", tags=["replay"])


@router.post("/replay", response_model=ReplayResult)
async def replay(
    payload: ReplayRequest,
    replayer: ToolCallReplayer = Depends(get_replayer),
) -> ReplayResult:
    """Rebuild resources for a past turn from its recorded tool calls."""
    return await replayer.replay(payload.tool_calls, payload.prefs)


__all__ = ["router"]
