"""Tool-call replay.

Rebuilds the resource state of a past turn from its recorded tool calls
without consulting the LLM. Records are replayed concurrently and each one
is isolated: a failing record contributes nothing.

Merging is order-based, so identical inputs give identical results: the
last passage wins, the last search wins, and single-kind results are
concatenated per kind.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from pydantic import Field

from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import (
    AggregatedSearch,
    CamelModel,
    PassageResult,
    ResourceKind,
    ResourcePreferences,
    ResourceResult,
    ToolCallRecord,
)
from bt_study_engine.services.providers.base import merge_results
from bt_study_engine.services.tool_dispatch import TOOL_KINDS, ToolDispatcher, ToolOutput

logger = get_logger(__name__)


class ReplayResult(CamelModel):
    """Merged resource state of one replayed turn."""

    passage: Optional[PassageResult] = None
    search: Optional[AggregatedSearch] = None
    resources: dict[ResourceKind, ResourceResult] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return self.passage is None and self.search is None and not self.resources


class ToolCallReplayer:
    """Replay recorded tool calls through a :class:`ToolDispatcher`."""

    def __init__(self, dispatcher: ToolDispatcher) -> None:
        self._dispatcher = dispatcher

    async def replay_one(
        self, record: ToolCallRecord, prefs: Optional[ResourcePreferences] = None
    ) -> ToolOutput:
        """Replay a single record; failures are logged and yield ``None``."""
        try:
            return await self._dispatcher.execute(record, prefs)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("[replay] %s failed: %s", record.tool, exc)
            return None

    async def replay(
        self, records: Iterable[ToolCallRecord], prefs: Optional[ResourcePreferences] = None
    ) -> ReplayResult:
        """Replay ``records`` concurrently and merge their outputs in record order."""
        records = list(records)
        if not records:
            return ReplayResult()
        logger.info("[replay] replaying %d tool call(s)", len(records))
        outputs = await asyncio.gather(*(self.replay_one(record, prefs) for record in records))
        result = merge_outputs(zip(records, outputs))
        logger.info(
            "[replay] passage=%s search=%s resources=%s",
            "yes" if result.passage else "no",
            "yes" if result.search else "no",
            {kind.value: len(res.matches) for kind, res in result.resources.items()},
        )
        return result


def merge_outputs(pairs: Iterable[tuple[ToolCallRecord, ToolOutput]]) -> ReplayResult:
    """Fold replayed outputs into a :class:`ReplayResult`."""
    passage: Optional[PassageResult] = None
    search: Optional[AggregatedSearch] = None
    collected: dict[ResourceKind, list[ResourceResult]] = {}
    for record, output in pairs:
        if isinstance(output, PassageResult):
            passage = output
        elif isinstance(output, AggregatedSearch):
            search = output
        elif isinstance(output, ResourceResult) and output.has_content():
            kind = TOOL_KINDS.get(record.tool)
            if kind is not None:
                collected.setdefault(kind, []).append(output)
    return ReplayResult(
        passage=passage,
        search=search,
        resources={kind: merge_results(results) for kind, results in collected.items()},
    )


__all__ = ["ReplayResult", "ToolCallReplayer", "merge_outputs"]
