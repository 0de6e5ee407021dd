"""Presentation policies over chat metadata and aggregated searches.

Two presentations share the same inputs:

* consolidated: one answer carrying a link per non-empty resource kind plus a
  resource-count footer;
* per-agent: one message per resource kind ("agent"), each with its own
  markdown and per-match links.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import Field

from bt_study_engine.core.chat_models import (
    ChatMetadata,
    NavigationHint,
    ResourceCounts,
    ResourceLink,
)
from bt_study_engine.core.models import AggregatedSearch, CamelModel, ResourceKind

AgentType = Literal["scripture", "notes", "questions", "academy", "words", "main"]

PREVIEW_CHARS = 160

# kind -> (agent, link type, consolidated title)
_KIND_PRESENTATION: dict[ResourceKind, tuple[AgentType, str, str]] = {
    ResourceKind.SCRIPTURE: ("scripture", "scripture", "Scripture"),
    ResourceKind.NOTES: ("notes", "note", "Translation Notes"),
    ResourceKind.QUESTIONS: ("questions", "question", "Study Questions"),
    ResourceKind.WORDS: ("words", "word", "Word Studies"),
    ResourceKind.ACADEMY: ("academy", "academy", "Academy Articles"),
}


class PresentationPolicy(str, Enum):
    CONSOLIDATED = "consolidated"
    PER_AGENT = "per-agent"


class AgentMessage(CamelModel):
    """A rendered assistant message attributed to one agent."""

    agent: AgentType
    content: str
    resources: list[ResourceLink] = Field(default_factory=list)


def resource_footer(total: int) -> str:
    """Footer appended to a finalized answer when resources were found."""
    return f"*{total} resources found — swipe right to explore.*"


def links_from_metadata(metadata: Optional[ChatMetadata]) -> list[ResourceLink]:
    """Consolidated links: the scripture reference plus one link per non-empty kind."""
    if metadata is None:
        return []
    context = metadata.scripture_reference or metadata.search_query or ""
    links: list[ResourceLink] = []
    if metadata.scripture_reference:
        links.append(
            ResourceLink(
                type="scripture",
                reference=metadata.scripture_reference,
                title=metadata.scripture_reference,
            )
        )
    counts = metadata.resource_counts
    for kind, count in (
        (ResourceKind.NOTES, counts.notes),
        (ResourceKind.QUESTIONS, counts.questions),
        (ResourceKind.WORDS, counts.words),
        (ResourceKind.ACADEMY, counts.academy),
    ):
        if count > 0:
            _, link_type, title = _KIND_PRESENTATION[kind]
            links.append(ResourceLink(type=link_type, reference=context, title=title))
    return links


def counts_from_search(search: AggregatedSearch) -> ResourceCounts:
    def _count(kind: ResourceKind) -> int:
        result = search.result_for(kind)
        return len(result.matches) if result is not None else 0

    return ResourceCounts(
        notes=_count(ResourceKind.NOTES),
        questions=_count(ResourceKind.QUESTIONS),
        words=_count(ResourceKind.WORDS),
        academy=_count(ResourceKind.ACADEMY),
    )


def metadata_from_search(search: AggregatedSearch) -> ChatMetadata:
    """Build the metadata frame a backend would emit for ``search``."""
    counts = counts_from_search(search)
    total = counts.notes + counts.questions + counts.words + counts.academy
    hint: Optional[NavigationHint] = None
    if search.result_for(ResourceKind.SCRIPTURE) is not None:
        hint = "search"
    elif total:
        hint = "resources"
    return ChatMetadata(
        search_query=search.query,
        resource_counts=counts,
        total_resources=total,
        navigation_hint=hint,
    )


def _preview(text: str) -> str:
    text = " ".join(text.split())
    return text if len(text) <= PREVIEW_CHARS else text[: PREVIEW_CHARS - 1].rstrip() + "…"


def consolidated_messages(search: AggregatedSearch) -> list[AgentMessage]:
    """One ``main`` message summarizing every kind that returned results."""
    metadata = metadata_from_search(search)
    lines = [f"Results for **{search.query}** in {search.scope_raw or 'the Bible'}:"]
    for kind, result in search.results.items():
        if result is None or kind not in _KIND_PRESENTATION:
            continue
        lines.append(f"- {_KIND_PRESENTATION[kind][2]}: {result.total_count}")
    content = "\n".join(lines)
    if metadata.total_resources > 0:
        content = f"{content}\n\n{resource_footer(metadata.total_resources)}"
    links = links_from_metadata(metadata)
    if search.result_for(ResourceKind.SCRIPTURE) is not None:
        links.insert(0, ResourceLink(type="scripture", reference=search.scope_raw, title="Scripture"))
    return [AgentMessage(agent="main", content=content, resources=links)]


def per_agent_messages(search: AggregatedSearch) -> list[AgentMessage]:
    """One message per kind with results, linking each individual match."""
    messages: list[AgentMessage] = []
    for kind, result in search.results.items():
        if result is None or kind not in _KIND_PRESENTATION:
            continue
        agent, link_type, _ = _KIND_PRESENTATION[kind]
        links = [
            ResourceLink(
                type=link_type,
                reference=match.reference,
                title=match.reference,
                preview=_preview(match.raw_content),
            )
            for match in result.matches
        ]
        messages.append(AgentMessage(agent=agent, content=result.combined_markdown, resources=links))
    return messages


def present(search: AggregatedSearch, policy: PresentationPolicy) -> list[AgentMessage]:
    """Render ``search`` under ``policy``."""
    if policy is PresentationPolicy.PER_AGENT:
        return per_agent_messages(search)
    return consolidated_messages(search)


__all__ = [
    "AgentType",
    "PresentationPolicy",
    "AgentMessage",
    "resource_footer",
    "links_from_metadata",
    "counts_from_search",
    "metadata_from_search",
    "consolidated_messages",
    "per_agent_messages",
    "present",
]
