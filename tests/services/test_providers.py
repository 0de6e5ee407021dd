"""Tests for per-kind providers: fan-out, isolation and decoding."""
# pylint: disable=missing-function-docstring

import asyncio
import json

from bt_study_engine.core.exceptions import ProviderRequestError
from bt_study_engine.core.models import ResourcePreferences
from bt_study_engine.services.providers import build_providers
from bt_study_engine.services.providers.base import MARKDOWN_SEPARATOR
from bt_study_engine.services.providers.questions import format_question
from bt_study_engine.services.providers.scripture import extract_verses
from bt_study_engine.services.scope_classifier import classify_scope


def _prefs() -> ResourcePreferences:
    return ResourcePreferences(language="en", organization="unfoldingWord", resource="ult")


def test_scripture_fans_out_per_testament_and_merges(make_provider, json_body):
    def responder(endpoint, params):
        assert endpoint == "fetch-scripture"
        if params["testament"] == "OT":
            return json_body(json.dumps({"matches": [{"reference": "Deuteronomy 6:5", "text": "Love the LORD"}]}))
        return json_body(
            json.dumps(
                {
                    "matches": [
                        {"reference": "John 3:16", "text": "For God so loved"},
                        {"reference": "1 John 4:8", "text": "God is love"},
                    ]
                }
            )
        )

    port = make_provider(responder)
    providers = build_providers(port)
    tokens = classify_scope("Bible").tokens

    result = asyncio.run(providers.scripture.search_all(tokens, "love", _prefs()))

    assert len(port.calls) == 2
    assert {params["testament"] for _, params in port.calls} == {"OT", "NT"}
    assert all(params["filter"] == "love" and params["resource"] == "ult" for _, params in port.calls)
    assert [m.reference for m in result.matches] == ["Deuteronomy 6:5", "John 3:16", "1 John 4:8"]
    assert result.total_count == 3
    assert result.breakdown is not None
    assert result.breakdown.by_testament == {"OT": 1, "NT": 2}
    assert MARKDOWN_SEPARATOR in result.combined_markdown


def test_failing_token_contributes_nothing(make_provider, json_body):
    def responder(endpoint, params):
        del endpoint
        if params["testament"] == "OT":
            raise ProviderRequestError("timed out")
        return json_body('{"matches": [{"reference": "Romans 5:8", "text": "God shows his love"}]}')

    providers = build_providers(make_provider(responder))
    result = asyncio.run(providers.scripture.search_all(classify_scope("all").tokens, "love", _prefs()))

    assert [m.reference for m in result.matches] == ["Romans 5:8"]
    assert result.total_count == 1


def test_malformed_token_payload_is_isolated(make_provider, json_body):
    def responder(endpoint, params):
        del endpoint
        if params["testament"] == "OT":
            return json_body("{not json")
        return None

    providers = build_providers(make_provider(responder))
    result = asyncio.run(providers.notes.search_all(classify_scope("Bible").tokens, "grace", _prefs()))

    assert not result.has_content()
    assert result.total_count == 0


def test_global_kind_issues_a_single_unscoped_request(make_provider, json_body):
    port = make_provider(lambda endpoint, params: json_body('{"term": "love", "definition": "Deep care"}'))
    providers = build_providers(port)

    result = asyncio.run(providers.words.search_all(classify_scope("Bible").tokens, "love", _prefs()))

    assert len(port.calls) == 1
    endpoint, params = port.calls[0]
    assert endpoint == "fetch-translation-word"
    assert "testament" not in params and "reference" not in params
    assert params["filter"] == "love"
    assert result.matches[0].reference == "love"
    assert result.combined_markdown == "## love\n\nDeep care"


def test_word_links_skip_scopes_broader_than_a_chapter(make_provider, json_body):
    port = make_provider(lambda endpoint, params: json_body('[{"word": "God", "articleId": "kt/god"}]'))
    providers = build_providers(port)

    broad = asyncio.run(providers.word_links.search_all(classify_scope("Romans").tokens, "", _prefs()))
    assert not broad.has_content()
    assert port.calls == []

    verse = asyncio.run(providers.word_links.search_all(classify_scope("John 3:16").tokens, "", _prefs()))
    assert [m.raw_content for m in verse.matches] == ["God (kt/god)"]
    assert verse.matches[0].reference == "John 3:16"
    assert port.calls[0][1]["reference"] == "John 3:16"


def test_notes_markdown_sections_become_matches(make_provider, markdown_body):
    text = "---\ntotal: 4\n---\n## Romans 8:28\nAll things work together.\n\n## Romans 8:29\nPredestined.\n"
    providers = build_providers(make_provider(lambda endpoint, params: markdown_body(text)))

    result = asyncio.run(providers.notes.search_all(classify_scope("Romans 8").tokens, "", _prefs()))

    assert [m.reference for m in result.matches] == ["Romans 8:28", "Romans 8:29"]
    assert result.matches[0].chapter == 8 and result.matches[0].verse == 28
    assert result.total_count == 4


def test_notes_quote_is_rendered_as_blockquote(make_provider, json_body):
    payload = {"notes": [{"reference": "John 1:1", "quote": "the Word", "note": "Refers to Jesus."}]}
    providers = build_providers(make_provider(lambda endpoint, params: json_body(json.dumps(payload))))

    result = asyncio.run(providers.notes.search_all(classify_scope("John 1:1").tokens, "", _prefs()))

    assert result.matches[0].raw_content == "> the Word\n\nRefers to Jesus."


def test_questions_are_formatted_as_question_and_answer(make_provider, json_body):
    payload = [{"reference": "John 3:16", "question": "Whom did God love?", "response": "The world."}]
    providers = build_providers(make_provider(lambda endpoint, params: json_body(json.dumps(payload))))

    result = asyncio.run(providers.questions.search_all(classify_scope("John 3").tokens, "", _prefs()))

    assert result.matches[0].raw_content == format_question("Whom did God love?", "The world.")
    assert result.matches[0].raw_content.startswith("**Q:** Whom")


def test_scripture_markdown_statistics_drive_breakdown(make_provider, markdown_body):
    text = (
        "---\ntotal: 40\nbyBook:\n  John: 30\n  Romans: 10\n---\n"
        "**John 3:16** For God so loved the world.\n"
        "**Romans 5:8** God shows his love for us.\n"
    )
    providers = build_providers(make_provider(lambda endpoint, params: markdown_body(text)))

    result = asyncio.run(providers.scripture.search_all(classify_scope("NT").tokens, "love", _prefs()))

    assert result.total_count == 40
    assert len(result.matches) == 2
    assert result.breakdown is not None
    assert result.breakdown.by_book == {"John": 30, "Romans": 10}


def test_fetch_passage_from_json(make_provider, json_body):
    payload = {"reference": "John 3:16", "text": "For God so loved the world", "translation": "ULT"}
    port = make_provider(lambda endpoint, params: json_body(json.dumps(payload)))
    providers = build_providers(port)

    passage = asyncio.run(providers.scripture.fetch_passage("John 3:16", _prefs()))

    assert passage is not None
    assert passage.raw_content == "For God so loved the world"
    assert passage.translation == "ULT"
    assert "filter" not in port.calls[0][1]


def test_fetch_passage_returns_none_for_missing_text(make_provider, json_body):
    providers = build_providers(make_provider(lambda endpoint, params: json_body('{"reference": "John 3:16"}')))
    assert asyncio.run(providers.scripture.fetch_passage("John 3:16", _prefs())) is None
    providers = build_providers(make_provider(lambda endpoint, params: None))
    assert asyncio.run(providers.scripture.fetch_passage("John 3:16", _prefs())) is None


def test_extract_verses_reads_usfm_and_numbered_text():
    numbered = extract_verses("**16** For God so loved\n**17** For God did not send")
    assert [(v.number, v.text) for v in numbered] == [(16, "For God so loved"), (17, "For God did not send")]

    usfm = extract_verses("\\c 3 \\v 16 For God so loved \\v 17 For God did not send")
    assert [v.number for v in usfm] == [16, 17]

    plain = extract_verses("In the beginning")
    assert [(v.number, v.text) for v in plain] == [(1, "In the beginning")]


def test_academy_lookup_uses_module_id(make_provider, markdown_body):
    port = make_provider(lambda endpoint, params: markdown_body("# Metaphor\n\nA metaphor is a figure of speech."))
    providers = build_providers(port)

    result = asyncio.run(providers.academy.lookup("figs-metaphor", _prefs()))

    assert port.calls == [
        (
            "fetch-translation-academy",
            {"moduleId": "figs-metaphor", "language": "en", "organization": "unfoldingWord"},
        )
    ]
    assert result.matches[0].reference == "Metaphor"


def test_word_article_markdown_stays_one_match(make_provider, markdown_body):
    text = "# Love\n\n## Definition:\n\nTo care deeply for others.\n\n## Translation Suggestions:\n\n* cherish\n"
    providers = build_providers(make_provider(lambda endpoint, params: markdown_body(text)))

    result = asyncio.run(providers.words.search_all(classify_scope("Bible").tokens, "love", _prefs()))

    (match,) = result.matches
    assert match.reference == "love"
    assert "To care deeply" in match.raw_content and "cherish" in match.raw_content
    assert result.combined_markdown == text.strip()


def test_academy_article_markdown_stays_one_match(make_provider, markdown_body):
    text = "# Metaphor\n\n## Description\n\nA figure of speech.\n\n## Examples\n\nThe Lord is my shepherd."
    providers = build_providers(make_provider(lambda endpoint, params: markdown_body(text)))

    result = asyncio.run(providers.academy.lookup("figs-metaphor", _prefs()))

    (match,) = result.matches
    assert match.reference == "Metaphor"
    assert "shepherd" in match.raw_content
