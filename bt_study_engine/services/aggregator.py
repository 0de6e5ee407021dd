"""Scope-aware multi-kind search aggregation.

One search fans out into one task per requested resource kind. Each kind is
isolated: a failure or an empty answer leaves that kind as ``None`` without
affecting the others. An optional ``abort`` event cancels the whole search.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import (
    DEFAULT_SEARCH_KINDS,
    AggregatedSearch,
    ResourceKind,
    ResourcePreferences,
    ResourceResult,
    ScopeClassification,
    ScopeType,
    ToolCallRecord,
)
from bt_study_engine.core.ports import ResourceProviderPort
from bt_study_engine.services.dialects import (
    count_breakdown,
    dedupe_matches,
    synthesize_markdown,
)
from bt_study_engine.services.providers import ProviderSet, build_providers
from bt_study_engine.services.scope_classifier import classify_scope, reference_in_scope

logger = get_logger(__name__)

SEARCH_TOOL_NAME = "search-agent"

# Scopes narrow enough that out-of-scope hits can be recognized and dropped.
_FILTERED_SCOPES = frozenset({ScopeType.VERSE, ScopeType.CHAPTER})


def _normalize_kinds(kinds: Optional[Iterable[ResourceKind | str]]) -> list[ResourceKind]:
    if not kinds:
        return list(DEFAULT_SEARCH_KINDS)
    return list(dict.fromkeys(ResourceKind(kind) for kind in kinds))


def _restrict_to_scope(result: ResourceResult, classification: ScopeClassification) -> ResourceResult:
    matches = dedupe_matches(result.matches)
    if classification.scope_type in _FILTERED_SCOPES:
        scope_ref = classification.tokens[0].value
        matches = [
            m for m in matches if m.chapter is None or reference_in_scope(m.reference, scope_ref)
        ]
    if len(matches) == len(result.matches):
        return result
    return ResourceResult(
        combined_markdown=synthesize_markdown(matches),
        matches=matches,
        total_count=len(matches),
        breakdown=count_breakdown(matches),
    )


def search_tool_call(
    query: str, scope_raw: str, kinds: Iterable[ResourceKind], prefs: ResourcePreferences
) -> ToolCallRecord:
    """Record the effective arguments of a search so it can be replayed later."""
    return ToolCallRecord(
        tool=SEARCH_TOOL_NAME,
        args={
            "query": query,
            "scope": scope_raw,
            "resourceTypes": [kind.value for kind in kinds],
            "language": prefs.language,
            "organization": prefs.organization,
            "resource": prefs.resource,
        },
    )


class SearchAggregator:
    """Run one search across resource kinds through a :class:`ProviderSet`."""

    def __init__(self, providers: ProviderSet) -> None:
        self._providers = providers

    @classmethod
    def from_port(cls, port: ResourceProviderPort) -> "SearchAggregator":
        return cls(build_providers(port))

    @property
    def providers(self) -> ProviderSet:
        return self._providers

    async def _search_kind(
        self,
        kind: ResourceKind,
        classification: ScopeClassification,
        query: str,
        prefs: ResourcePreferences,
    ) -> ResourceResult:
        provider = self._providers.for_kind(kind)
        try:
            result = await provider.search_all(classification.tokens, query, prefs)
        except Exception:  # pylint: disable=broad-except
            logger.exception("[aggregator] %s search failed", kind.value)
            return ResourceResult()
        return _restrict_to_scope(result, classification)

    async def aggregate(
        self,
        query: str,
        scope_raw: Optional[str],
        kinds: Optional[Iterable[ResourceKind | str]] = None,
        prefs: Optional[ResourcePreferences] = None,
        abort: Optional[asyncio.Event] = None,
    ) -> AggregatedSearch | None:
        """Search ``query`` within ``scope_raw`` across ``kinds``.

        Returns ``None`` when ``abort`` is set before every kind has finished.
        """
        prefs = prefs or ResourcePreferences()
        requested = _normalize_kinds(kinds)
        classification = classify_scope(scope_raw)
        logger.info(
            "[aggregator] query=%r scope=%r type=%s tokens=%s kinds=%s",
            query,
            classification.raw,
            classification.scope_type.value,
            [token.value for token in classification.tokens],
            [kind.value for kind in requested],
        )
        if abort is not None and abort.is_set():
            logger.info("[aggregator] aborted before dispatch")
            return None

        tasks = {
            kind: asyncio.create_task(self._search_kind(kind, classification, query, prefs))
            for kind in requested
        }
        try:
            if abort is None:
                await asyncio.gather(*tasks.values())
            elif await _wait_unless_aborted(list(tasks.values()), abort):
                in_flight = sum(not task.done() for task in tasks.values())
                logger.info("[aggregator] aborted with %d kind(s) in flight", in_flight)
                return None
        finally:
            pending = [task for task in tasks.values() if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        results: dict[ResourceKind, Optional[ResourceResult]] = {}
        for kind, task in tasks.items():
            result = task.result()
            results[kind] = result if result.has_content() else None

        summary = ", ".join(
            f"{kind.value}:{result.total_count}" for kind, result in results.items() if result is not None
        )
        logger.info("[aggregator] results: %s", summary or "none")
        return AggregatedSearch(
            query=query,
            scope_raw=classification.raw,
            scope_type=classification.scope_type,
            results=results,
            tool_calls_issued=[search_tool_call(query, classification.raw, requested, prefs)],
        )


async def _wait_unless_aborted(tasks: list[asyncio.Task], abort: asyncio.Event) -> bool:
    """Wait for ``tasks``; return True if ``abort`` fired first."""
    abort_waiter = asyncio.create_task(abort.wait())
    try:
        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(
                pending | {abort_waiter}, return_when=asyncio.FIRST_COMPLETED
            )
            if abort_waiter in done or abort.is_set():
                return True
            pending.discard(abort_waiter)
        return abort.is_set()
    finally:
        abort_waiter.cancel()
        await asyncio.gather(abort_waiter, return_exceptions=True)


async def aggregate(
    port: ResourceProviderPort,
    query: str,
    scope_raw: Optional[str],
    kinds: Optional[Iterable[ResourceKind | str]] = None,
    prefs: Optional[ResourcePreferences] = None,
    abort: Optional[asyncio.Event] = None,
) -> AggregatedSearch | None:
    """Convenience wrapper running a single search against ``port``."""
    return await SearchAggregator.from_port(port).aggregate(query, scope_raw, kinds, prefs, abort)


__all__ = ["SearchAggregator", "aggregate", "search_tool_call", "SEARCH_TOOL_NAME"]
