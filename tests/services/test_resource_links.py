"""Tests for consolidated and per-agent presentation of search results."""
# pylint: disable=missing-function-docstring

from bt_study_engine.core.chat_models import ChatMetadata, ResourceCounts
from bt_study_engine.core.models import (
    AggregatedSearch,
    Match,
    ResourceKind,
    ResourceResult,
    ScopeType,
)
from bt_study_engine.services.resource_links import (
    PREVIEW_CHARS,
    PresentationPolicy,
    links_from_metadata,
    metadata_from_search,
    present,
    resource_footer,
)


def _search() -> AggregatedSearch:
    return AggregatedSearch(
        query="love",
        scope_raw="John 3",
        scope_type=ScopeType.CHAPTER,
        results={
            ResourceKind.SCRIPTURE: ResourceResult(
                combined_markdown="**John 3:16** For God so loved",
                matches=[Match(reference="John 3:16", raw_content="For God so loved")],
            ),
            ResourceKind.NOTES: ResourceResult(
                combined_markdown="**John 3:16** note",
                matches=[
                    Match(reference="John 3:16", raw_content="x" * 400),
                    Match(reference="John 3:17", raw_content="short note"),
                ],
            ),
            ResourceKind.QUESTIONS: None,
            ResourceKind.WORDS: None,
        },
    )


def test_footer_text():
    assert resource_footer(5) == "*5 resources found — swipe right to explore.*"


def test_links_only_for_non_empty_kinds():
    metadata = ChatMetadata(
        scripture_reference="Romans 8:28",
        resource_counts=ResourceCounts(notes=0, questions=2, words=1, academy=0),
        total_resources=3,
    )
    links = links_from_metadata(metadata)
    assert [(link.type, link.title) for link in links] == [
        ("scripture", "Romans 8:28"),
        ("question", "Study Questions"),
        ("word", "Word Studies"),
    ]
    assert all(link.reference == "Romans 8:28" for link in links)
    assert links_from_metadata(None) == []


def test_metadata_from_search_counts_resource_matches():
    metadata = metadata_from_search(_search())
    assert metadata.resource_counts.notes == 2
    assert metadata.total_resources == 2
    assert metadata.navigation_hint == "search"
    assert metadata.search_query == "love"


def test_consolidated_policy_yields_one_main_message():
    (message,) = present(_search(), PresentationPolicy.CONSOLIDATED)
    assert message.agent == "main"
    assert "- Scripture: 1" in message.content
    assert "- Translation Notes: 2" in message.content
    assert message.content.endswith(resource_footer(2))
    assert [link.type for link in message.resources] == ["scripture", "note"]


def test_per_agent_policy_yields_one_message_per_kind():
    messages = present(_search(), PresentationPolicy.PER_AGENT)
    assert [m.agent for m in messages] == ["scripture", "notes"]
    notes = messages[1]
    assert notes.content == "**John 3:16** note"
    assert [link.reference for link in notes.resources] == ["John 3:16", "John 3:17"]
    assert len(notes.resources[0].preview) == PREVIEW_CHARS
    assert notes.resources[1].preview == "short note"
