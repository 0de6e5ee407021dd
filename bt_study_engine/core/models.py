"""Core data transfer objects for scope-aware resource search."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from bt_study_engine.core.config import config


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for UI consumers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScopeType(str, Enum):
    """Reference granularity bounding a provider query."""

    VERSE = "verse"
    CHAPTER = "chapter"
    BOOK = "book"
    TESTAMENT = "testament"
    CORPUS = "corpus"


class ResourceKind(str, Enum):
    """Resource kinds served by the Translation Helps providers."""

    SCRIPTURE = "scripture"
    NOTES = "notes"
    QUESTIONS = "questions"
    WORDS = "words"
    ACADEMY = "academy"
    WORD_LINKS = "word-links"


# Corpora that are not partitioned by testament/book.
GLOBAL_KINDS: frozenset[ResourceKind] = frozenset({ResourceKind.WORDS, ResourceKind.ACADEMY})

DEFAULT_SEARCH_KINDS: tuple[ResourceKind, ...] = (
    ResourceKind.SCRIPTURE,
    ResourceKind.NOTES,
    ResourceKind.QUESTIONS,
    ResourceKind.WORDS,
)


class ScopeToken(CamelModel):
    """One bounded scope value sent to a scope-dependent provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    kind: ScopeType
    value: str

    def query_params(self) -> dict[str, str]:
        """Return the provider query parameter that carries this scope."""
        if self.kind is ScopeType.TESTAMENT:
            return {"testament": self.value}
        return {"reference": self.value}


class ScopeClassification(CamelModel):
    """Scope type and expanded tokens for a raw reference string."""

    raw: str
    scope_type: ScopeType
    tokens: list[ScopeToken]


class Match(CamelModel):
    """One normalized hit; ``raw_content`` is the rendering source of truth."""

    reference: str
    book: Optional[str] = None
    chapter: Optional[int] = None
    verse: Optional[int] = None
    raw_content: str = ""
    matched_terms: Optional[list[str]] = None


class Breakdown(CamelModel):
    """Match counts grouped by testament and by book."""

    by_testament: dict[str, int] = Field(default_factory=dict)
    by_book: dict[str, int] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        """True when neither grouping carries any count."""
        return not self.by_testament and not self.by_book


class ResourceResult(CamelModel):
    """Normalized result for one resource kind."""

    combined_markdown: str = ""
    matches: list[Match] = Field(default_factory=list)
    total_count: int = 0
    breakdown: Optional[Breakdown] = None

    @model_validator(mode="after")
    def _total_covers_matches(self) -> "ResourceResult":
        # Upstream statistics may exceed the parsed matches, never the reverse.
        if self.total_count < len(self.matches):
            self.total_count = len(self.matches)
        return self

    def has_content(self) -> bool:
        """True when the result carries at least one match or renderable markdown."""
        return bool(self.matches) or bool(self.combined_markdown.strip())


class ToolCallRecord(CamelModel):
    """A recorded provider invocation; immutable once a turn completes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    tool: str
    args: dict[str, Any] = Field(default_factory=dict)


class AggregatedSearch(CamelModel):
    """Consolidated multi-kind search result handed to rendering collaborators.

    ``results`` carries every requested kind; ``None`` signals that nothing was
    found for that kind.
    """

    query: str
    scope_raw: str
    scope_type: ScopeType
    results: dict[ResourceKind, Optional[ResourceResult]] = Field(default_factory=dict)
    tool_calls_issued: list[ToolCallRecord] = Field(default_factory=list)

    def result_for(self, kind: ResourceKind) -> Optional[ResourceResult]:
        """Return the result for ``kind`` or ``None`` when absent or empty."""
        return self.results.get(kind)


class ScriptureVerse(CamelModel):
    """A numbered verse extracted from a passage."""

    number: int
    text: str


class PassageResult(CamelModel):
    """Plain scripture passage lookup (no filter)."""

    reference: str
    raw_content: str
    verses: list[ScriptureVerse] = Field(default_factory=list)
    translation: str
    book: Optional[Any] = None
    metadata: Optional[dict[str, Any]] = None


class ResourcePreferences(CamelModel):
    """Explicit resource/language preference passed into providers."""

    language: str = Field(default_factory=lambda: config.DEFAULT_LANGUAGE)
    organization: str = Field(default_factory=lambda: config.DEFAULT_ORGANIZATION)
    resource: str = Field(default_factory=lambda: config.DEFAULT_RESOURCE)

    def with_overrides(self, args: dict[str, Any]) -> "ResourcePreferences":
        """Return preferences with any non-empty overrides from tool ``args``."""
        updates = {
            key: str(args[key])
            for key in ("language", "organization", "resource")
            if args.get(key) not in (None, "")
        }
        return self.model_copy(update=updates) if updates else self


__all__ = [
    "CamelModel",
    "ScopeType",
    "ResourceKind",
    "GLOBAL_KINDS",
    "DEFAULT_SEARCH_KINDS",
    "ScopeToken",
    "ScopeClassification",
    "Match",
    "Breakdown",
    "ResourceResult",
    "ToolCallRecord",
    "AggregatedSearch",
    "ScriptureVerse",
    "PassageResult",
    "ResourcePreferences",
]
