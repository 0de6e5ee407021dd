"""Live tool execution endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from bt_study_engine.apps.api.dependencies import get_tool_dispatcher
from bt_study_engine.core.api_models import ToolExecuteRequest, ToolExecuteResponse
from bt_study_engine.core.exceptions import MalformedPayloadError, ProviderRequestError
from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import AggregatedSearch, PassageResult, ToolCallRecord
from bt_study_engine.services.tool_dispatch import ToolDispatcher

router = APIRouter(prefix="/api/v1", tags=["tools"])
logger = get_logger(__name__)


@router.post("/tools/execute", response_model=ToolExecuteResponse)
async def execute_tool(
    payload: ToolExecuteRequest,
    dispatcher: ToolDispatcher = Depends(get_tool_dispatcher),
) -> ToolExecuteResponse:
    """Execute one tool call with the same dispatcher used for replay."""
    if not dispatcher.supports(payload.tool):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown tool: {payload.tool}",
        )
    record = ToolCallRecord(tool=payload.tool, args=payload.args)
    try:
        output = await dispatcher.execute(record, payload.prefs)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except (ProviderRequestError, MalformedPayloadError) as exc:
        logger.warning("[api] tool %s failed upstream: %s", payload.tool, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    if output is None:
        return ToolExecuteResponse(tool=payload.tool, result_type="none")
    if isinstance(output, PassageResult):
        result_type = "passage"
    elif isinstance(output, AggregatedSearch):
        result_type = "search"
    else:
        result_type = "resource"
    return ToolExecuteResponse(
        tool=payload.tool,
        result_type=result_type,
        result=output.model_dump(by_alias=True, mode="json"),
    )


__all__ = ["router"]
