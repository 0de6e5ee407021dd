"""Tool-call dispatch shared by live execution and replay.

Every recorded ``{tool, args}`` pair maps to one handler. The same
dispatcher serves the API's live tool execution and history replay, so a
replayed call reproduces exactly what the live call returned.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import (
    AggregatedSearch,
    PassageResult,
    ResourceKind,
    ResourcePreferences,
    ResourceResult,
    ToolCallRecord,
)
from bt_study_engine.core.ports import ResourceProviderPort
from bt_study_engine.services.aggregator import SEARCH_TOOL_NAME, SearchAggregator
from bt_study_engine.services.providers import ProviderSet
from bt_study_engine.services.scope_classifier import classify_scope

logger = get_logger(__name__)

ToolOutput = Union[PassageResult, AggregatedSearch, ResourceResult, None]
Handler = Callable[[Mapping[str, Any], ResourcePreferences], Awaitable[ToolOutput]]

# Tools whose output is a single-kind ResourceResult.
TOOL_KINDS: dict[str, ResourceKind] = {
    "get_translation_notes": ResourceKind.NOTES,
    "get_translation_questions": ResourceKind.QUESTIONS,
    "get_translation_word": ResourceKind.WORDS,
    "get_translation_academy": ResourceKind.ACADEMY,
    "get_translation_word_links": ResourceKind.WORD_LINKS,
}


def _arg(args: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = args.get(key)
        if value not in (None, ""):
            return str(value).strip()
    return ""


def _require(args: Mapping[str, Any], tool: str, *keys: str) -> str:
    value = _arg(args, *keys)
    if not value:
        raise ValueError(f"{tool} requires '{keys[0]}'")
    return value


class ToolDispatcher:
    """Execute tool-call records against the Translation Helps providers."""

    def __init__(self, aggregator: SearchAggregator) -> None:
        self._aggregator = aggregator
        self._handlers: dict[str, Handler] = {
            SEARCH_TOOL_NAME: self._search,
            "search_resources": self._search,
            "get_scripture_passage": self._scripture_passage,
            "get_translation_notes": self._notes,
            "get_translation_questions": self._questions,
            "get_translation_word": self._word,
            "get_translation_academy": self._academy,
            "get_translation_word_links": self._word_links,
        }

    @classmethod
    def from_port(cls, port: ResourceProviderPort) -> "ToolDispatcher":
        return cls(SearchAggregator.from_port(port))

    @property
    def aggregator(self) -> SearchAggregator:
        return self._aggregator

    @property
    def providers(self) -> ProviderSet:
        return self._aggregator.providers

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._handlers)

    def supports(self, tool: str) -> bool:
        return tool in self._handlers

    async def execute(
        self, record: ToolCallRecord, prefs: Optional[ResourcePreferences] = None
    ) -> ToolOutput:
        """Run ``record``; unknown tools are skipped and return ``None``.

        Tool ``args`` override the matching fields of ``prefs``.
        """
        handler = self._handlers.get(record.tool)
        if handler is None:
            logger.info("[dispatch] skipping unknown tool %r", record.tool)
            return None
        effective = (prefs or ResourcePreferences()).with_overrides(record.args)
        logger.info("[dispatch] %s args=%s", record.tool, record.args)
        return await handler(record.args, effective)

    async def _search(self, args: Mapping[str, Any], prefs: ResourcePreferences) -> ToolOutput:
        query = _require(args, "search", "query", "filter")
        scope = _arg(args, "scope", "reference") or "Bible"
        kinds = args.get("resourceTypes") or args.get("resource_types")
        return await self._aggregator.aggregate(query, scope, kinds, prefs)

    async def _scripture_passage(self, args: Mapping[str, Any], prefs: ResourcePreferences) -> ToolOutput:
        reference = _require(args, "get_scripture_passage", "reference")
        query = _arg(args, "filter")
        if query:
            return await self._aggregator.aggregate(query, reference, [ResourceKind.SCRIPTURE], prefs)
        return await self.providers.scripture.fetch_passage(reference, prefs)

    async def _notes(self, args: Mapping[str, Any], prefs: ResourcePreferences) -> ToolOutput:
        reference = _require(args, "get_translation_notes", "reference")
        tokens = classify_scope(reference).tokens
        return await self.providers.notes.search_all(tokens, _arg(args, "filter"), prefs)

    async def _questions(self, args: Mapping[str, Any], prefs: ResourcePreferences) -> ToolOutput:
        reference = _require(args, "get_translation_questions", "reference")
        tokens = classify_scope(reference).tokens
        return await self.providers.questions.search_all(tokens, _arg(args, "filter"), prefs)

    async def _word(self, args: Mapping[str, Any], prefs: ResourcePreferences) -> ToolOutput:
        term = _arg(args, "term", "word")
        if term:
            return await self.providers.words.lookup(term, prefs, _arg(args, "reference") or None)
        query = _require(args, "get_translation_word", "term", "filter")
        return await self.providers.words.search_all([], query, prefs)

    async def _academy(self, args: Mapping[str, Any], prefs: ResourcePreferences) -> ToolOutput:
        module_id = _arg(args, "moduleId", "module_id")
        if module_id:
            return await self.providers.academy.lookup(module_id, prefs)
        query = _require(args, "get_translation_academy", "moduleId", "filter")
        return await self.providers.academy.search_all([], query, prefs)

    async def _word_links(self, args: Mapping[str, Any], prefs: ResourcePreferences) -> ToolOutput:
        reference = _require(args, "get_translation_word_links", "reference")
        tokens = classify_scope(reference).tokens
        return await self.providers.word_links.search_all(tokens, _arg(args, "filter"), prefs)


__all__ = ["ToolDispatcher", "ToolOutput", "TOOL_KINDS"]
