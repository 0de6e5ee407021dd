"""Tests for core data models."""

from __future__ import annotations

from bt_study_engine.core import models
from bt_study_engine.core.chat_models import AnswerRecord, ChatMetadata, TurnState


def test_total_count_never_below_match_count() -> None:
    """Upstream totals may exceed parsed matches but never fall below them."""
    matches = [models.Match(reference="John 3:16"), models.Match(reference="John 3:17")]
    assert models.ResourceResult(matches=matches).total_count == 2
    assert models.ResourceResult(matches=matches, total_count=40).total_count == 40


def test_has_content_considers_markdown_and_matches() -> None:
    assert not models.ResourceResult().has_content()
    assert not models.ResourceResult(combined_markdown="   ").has_content()
    assert models.ResourceResult(combined_markdown="## Romans").has_content()


def test_models_serialize_camel_case() -> None:
    match = models.Match(reference="John 3:16", raw_content="For God")
    dumped = match.model_dump(by_alias=True)
    assert dumped["rawContent"] == "For God"
    assert models.Match.model_validate({"reference": "x", "rawContent": "y"}).raw_content == "y"


def test_preference_overrides_ignore_blank_values() -> None:
    prefs = models.ResourcePreferences(language="en", organization="unfoldingWord", resource="ult")
    assert prefs.with_overrides({"language": "", "resource": None}) is prefs
    updated = prefs.with_overrides({"language": "fr", "organization": "Door43"})
    assert (updated.language, updated.organization, updated.resource) == ("fr", "Door43", "ult")


def test_tool_call_record_accepts_missing_args() -> None:
    record = models.ToolCallRecord.model_validate({"tool": "get_translation_notes"})
    assert record.args == {}


def test_scope_token_params() -> None:
    token = models.ScopeToken(kind=models.ScopeType.BOOK, value="Romans")
    assert token.query_params() == {"reference": "Romans"}


def test_metadata_frame_defaults() -> None:
    metadata = ChatMetadata.model_validate({"type": "metadata", "total_resources": 3})
    assert metadata.total_resources == 3
    assert metadata.resource_counts.notes == 0
    assert metadata.navigation_hint is None


def test_answer_record_terminal_states() -> None:
    answer = AnswerRecord(id="a")
    assert not answer.is_terminal
    for state in (TurnState.DONE, TurnState.ERRORED, TurnState.CANCELLED):
        answer.state = state
        assert answer.is_terminal


def test_unknown_navigation_hint_becomes_none() -> None:
    assert ChatMetadata(navigation_hint="timeline").navigation_hint is None
    assert ChatMetadata(navigation_hint="notes").navigation_hint == "notes"
