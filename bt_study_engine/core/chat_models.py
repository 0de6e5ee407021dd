"""Models for the streaming chat protocol and the in-flight answer record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bt_study_engine.core.models import CamelModel, ToolCallRecord

NavigationHint = Literal["scripture", "resources", "search", "notes"]


class TurnState(str, Enum):
    """Lifecycle of one streamed answer."""

    IDLE = "idle"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    DONE = "done"
    ERRORED = "errored"
    CANCELLED = "cancelled"


TERMINAL_STATES: frozenset[TurnState] = frozenset(
    {TurnState.DONE, TurnState.ERRORED, TurnState.CANCELLED}
)


class ResourceCounts(BaseModel):
    """Per-kind resource counts reported by the backend metadata frame."""

    model_config = ConfigDict(extra="ignore")

    notes: int = 0
    questions: int = 0
    words: int = 0
    academy: int = 0


class SearchMatchSummary(BaseModel):
    """Compact scripture hit carried in the metadata frame."""

    model_config = ConfigDict(extra="ignore")

    book: str = ""
    chapter: int = 0
    verse: int = 0
    text: str = ""


class ChatMetadata(BaseModel):
    """Payload of a ``metadata`` frame (snake_case on the wire)."""

    model_config = ConfigDict(extra="ignore")

    scripture_reference: Optional[str] = None
    search_query: Optional[str] = None
    resource_counts: ResourceCounts = Field(default_factory=ResourceCounts)
    total_resources: int = 0
    mcp_resources: list[dict[str, Any]] = Field(default_factory=list)
    navigation_hint: Optional[NavigationHint] = None
    search_matches: list[SearchMatchSummary] = Field(default_factory=list)

    @field_validator("navigation_hint", mode="before")
    @classmethod
    def _coerce_navigation_hint(cls, value: Any) -> Optional[str]:
        # Unroutable hints become None.
        return value if value in get_args(NavigationHint) else None


class ResourceLink(CamelModel):
    """Link from an answer to a resource card."""

    type: Literal["scripture", "note", "question", "academy", "word"]
    reference: str
    title: str
    preview: Optional[str] = None


@dataclass(frozen=True, slots=True)
class MetadataEvent:
    """Decoded ``metadata`` frame."""

    metadata: ChatMetadata


@dataclass(frozen=True, slots=True)
class ContentDeltaEvent:
    """Decoded ``content`` frame carrying the next slice of prose."""

    content: str


@dataclass(frozen=True, slots=True)
class ToolResultsEvent:
    """Decoded ``tool_results`` frame listing the provider calls made for this turn."""

    tool_calls: tuple[ToolCallRecord, ...]


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """Decoded ``error`` frame."""

    message: str


@dataclass(frozen=True, slots=True)
class DoneEvent:
    """Completion sentinel."""


StreamEvent = Union[MetadataEvent, ContentDeltaEvent, ToolResultsEvent, ErrorEvent, DoneEvent]


@dataclass(frozen=True, slots=True)
class ScriptureReferenceFound:
    """The backend identified a scripture reference the UI may navigate to."""

    reference: str


@dataclass(frozen=True, slots=True)
class AnswerUpdated:
    """The accumulated answer content changed."""

    content: str


@dataclass(frozen=True, slots=True)
class TurnCompleted:
    """The turn reached ``done``."""

    answer_id: str


@dataclass(frozen=True, slots=True)
class TurnFailed:
    """The turn reached ``errored``; ``message`` is the user-visible reason."""

    answer_id: str
    message: str


ConsumerNotice = Union[ScriptureReferenceFound, AnswerUpdated, TurnCompleted, TurnFailed]


@dataclass(slots=True)
class AnswerRecord:  # pylint: disable=too-many-instance-attributes
    """The single in-flight assistant answer for a turn."""

    id: str
    role: str = "assistant"
    content: str = ""
    is_streaming: bool = False
    state: TurnState = TurnState.IDLE
    metadata: Optional[ChatMetadata] = None
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    resources: list[ResourceLink] = field(default_factory=list)
    navigation_hint: Optional[str] = None
    mentioned_references: list[str] = field(default_factory=list)
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        """True once the answer can no longer change."""
        return self.state in TERMINAL_STATES


__all__ = [
    "NavigationHint",
    "TurnState",
    "TERMINAL_STATES",
    "ResourceCounts",
    "SearchMatchSummary",
    "ChatMetadata",
    "ResourceLink",
    "MetadataEvent",
    "ContentDeltaEvent",
    "ToolResultsEvent",
    "ErrorEvent",
    "DoneEvent",
    "StreamEvent",
    "ScriptureReferenceFound",
    "AnswerUpdated",
    "TurnCompleted",
    "TurnFailed",
    "ConsumerNotice",
    "AnswerRecord",
]
