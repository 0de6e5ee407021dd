"""Request and response models for the HTTP API."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field

from bt_study_engine.core.models import (
    AggregatedSearch,
    CamelModel,
    ResourceKind,
    ResourcePreferences,
    ToolCallRecord,
)


class SearchRequest(CamelModel):
    """Body of ``POST /api/v1/search``."""

    query: str = Field(min_length=1)
    scope: str = "Bible"
    resource_types: Optional[list[ResourceKind]] = None
    prefs: Optional[ResourcePreferences] = None
    policy: Literal["consolidated", "per-agent"] = "consolidated"


class SearchResponse(CamelModel):
    search: Optional[AggregatedSearch] = None
    messages: list[dict[str, Any]] = Field(default_factory=list)


class ReplayRequest(CamelModel):
    """Body of ``POST /api/v1/replay``."""

    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    prefs: Optional[ResourcePreferences] = None


class ToolExecuteRequest(CamelModel):
    """Body of ``POST /api/v1/tools/execute``."""

    tool: str = Field(min_length=1)
    args: dict[str, Any] = Field(default_factory=dict)
    prefs: Optional[ResourcePreferences] = None


class ToolExecuteResponse(CamelModel):
    tool: str
    result_type: Literal["passage", "search", "resource", "none"]
    result: Optional[dict[str, Any]] = None


__all__ = [
    "SearchRequest",
    "SearchResponse",
    "ReplayRequest",
    "ToolExecuteRequest",
    "ToolExecuteResponse",
]
