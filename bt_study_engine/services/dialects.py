"""Response dialect detection for Translation Helps providers.

Providers answer the same endpoint in one of three shapes:

* ``JsonMatches``: a JSON array, or an object carrying a ``matches`` array.
* ``JsonScalar``: any other JSON object (a single article or passage).
* ``MarkdownSections``: markdown, optionally with YAML frontmatter, split on
  ``##``/``###`` headings whose text is the reference.

:func:`decode_response` picks the dialect once from the content type and the
JSON shape. Each provider then maps the dialect to a ``ResourceResult`` in a
single decode function; the helpers below are shared by those functions.
"""

from __future__ import annotations

import json
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

import yaml

from bt_study_engine.core.books import testament_for_book
from bt_study_engine.core.exceptions import MalformedPayloadError
from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import Breakdown, Match
from bt_study_engine.core.ports import ProviderResponse
from bt_study_engine.services.scope_classifier import parse_reference

logger = get_logger(__name__)

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_HEADING_RE = re.compile(r"^#{2,3}[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)
_BOLD_VERSE_RE = re.compile(
    r"\*\*(?P<ref>[^*\n]+?\s+\d+:\d+(?:-\d+)?)\*\*[ \t]*(?P<text>.+?)(?=\n[ \t]*\*\*[^*\n]+?\s+\d+:\d+|\Z)",
    re.DOTALL,
)


@dataclass(slots=True)
class JsonMatches:
    """A list of JSON items; ``payload`` keeps the enclosing object, if any."""

    items: list[dict[str, Any]]
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class JsonScalar:
    """A single JSON object."""

    payload: dict[str, Any]


@dataclass(slots=True)
class MarkdownSection:
    heading: str
    body: str


@dataclass(slots=True)
class MarkdownSections:
    """Markdown body with frontmatter removed and heading sections split out."""

    body: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    sections: list[MarkdownSection] = field(default_factory=list)


Dialect = Union[JsonMatches, JsonScalar, MarkdownSections]


def _looks_like_json(text: str) -> bool:
    stripped = text.lstrip()
    return stripped.startswith("{") or stripped.startswith("[")


def decode_response(response: ProviderResponse) -> Dialect:
    """Classify ``response`` into a dialect.

    Raises :class:`MalformedPayloadError` when a JSON body cannot be parsed
    or has a shape no provider understands.
    """
    if response.is_json or ("text/" not in response.content_type and _looks_like_json(response.text)):
        try:
            data = json.loads(response.text)
        except json.JSONDecodeError as exc:
            raise MalformedPayloadError(f"invalid JSON body: {exc}") from exc
        return _classify_json(data)
    return parse_markdown(response.text)


def _classify_json(data: Any) -> Dialect:
    if isinstance(data, list):
        return JsonMatches(items=[item for item in data if isinstance(item, dict)])
    if isinstance(data, dict):
        matches = data.get("matches")
        if isinstance(matches, list):
            return JsonMatches(items=[item for item in matches if isinstance(item, dict)], payload=data)
        return JsonScalar(payload=data)
    raise MalformedPayloadError(f"unexpected JSON payload of type {type(data).__name__}")


def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from ``text``; invalid YAML is left in the body."""
    match = _FRONTMATTER_RE.match(text)
    if match is None:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        logger.warning("[dialects] ignoring unparseable frontmatter: %s", exc)
        return {}, text
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end():]


def split_markdown_sections(body: str) -> list[MarkdownSection]:
    """Split ``body`` on ``##``/``###`` headings; text before the first heading is dropped."""
    headings = list(_HEADING_RE.finditer(body))
    sections: list[MarkdownSection] = []
    for index, heading in enumerate(headings):
        end = headings[index + 1].start() if index + 1 < len(headings) else len(body)
        sections.append(
            MarkdownSection(
                heading=heading.group(1).strip(),
                body=body[heading.end():end].strip(),
            )
        )
    return sections


def parse_markdown(text: str) -> MarkdownSections:
    """Build the markdown dialect for ``text``."""
    frontmatter, body = parse_frontmatter(text)
    body = body.strip()
    return MarkdownSections(body=body, frontmatter=frontmatter, sections=split_markdown_sections(body))


def extract_bold_verses(body: str) -> list[tuple[str, str]]:
    """Return ``(reference, text)`` pairs for ``**Book 1:2** text`` runs."""
    return [
        (m.group("ref").strip(), m.group("text").strip())
        for m in _BOLD_VERSE_RE.finditer(body)
        if m.group("text").strip()
    ]


def first_text(item: Mapping[str, Any], *keys: str) -> str:
    """Return the first non-blank string value among ``keys``."""
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def first_list(item: Mapping[str, Any], *keys: str) -> Optional[list[dict[str, Any]]]:
    """Return the first list value among ``keys`` (dict entries only)."""
    for key in keys:
        value = item.get(key)
        if isinstance(value, list):
            return [entry for entry in value if isinstance(entry, dict)]
    return None


def matched_terms(item: Mapping[str, Any]) -> Optional[list[str]]:
    terms = item.get("matchedTerms")
    if isinstance(terms, list):
        return [str(term) for term in terms]
    return None


def build_match(reference: str, raw_content: str, terms: Optional[list[str]] = None) -> Match:
    """Create a :class:`Match`, extracting book/chapter/verse from ``reference`` when possible."""
    parsed = parse_reference(reference)
    book = chapter = verse = None
    if parsed is not None and parsed.chapter is not None:
        book, chapter, verse = parsed.book, parsed.chapter, parsed.verse
    return Match(
        reference=reference,
        book=book,
        chapter=chapter,
        verse=verse,
        raw_content=raw_content,
        matched_terms=terms,
    )


def synthesize_markdown(matches: Iterable[Match]) -> str:
    """Render ``**reference** text`` blocks for JSON dialects without markdown."""
    return "\n\n".join(f"**{m.reference}** {m.raw_content}".rstrip() for m in matches)


def dedupe_matches(matches: Iterable[Match]) -> list[Match]:
    """Drop repeated ``(reference, raw_content)`` pairs, keeping first occurrence order."""
    seen: set[tuple[str, str]] = set()
    unique: list[Match] = []
    for match in matches:
        key = (match.reference, match.raw_content)
        if key in seen:
            continue
        seen.add(key)
        unique.append(match)
    return unique


def _int_or_zero(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _counts(value: Any) -> dict[str, int]:
    if not isinstance(value, Mapping):
        return {}
    return {str(key).strip(): _int_or_zero(count) for key, count in value.items()}


def read_statistics(stats: Any) -> tuple[int, Optional[Breakdown]]:
    """Read ``total``/``byTestament``/``byBook`` from a statistics mapping."""
    if not isinstance(stats, Mapping):
        return 0, None
    total = _int_or_zero(stats.get("total", stats.get("totalMatches")))
    breakdown = Breakdown(
        by_testament=_counts(stats.get("byTestament")),
        by_book=_counts(stats.get("byBook")),
    )
    return total, None if breakdown.is_empty() else breakdown


def count_breakdown(matches: Iterable[Match]) -> Optional[Breakdown]:
    """Count matches per book and testament; used when upstream reports no statistics."""
    by_book: Counter[str] = Counter()
    by_testament: Counter[str] = Counter()
    for match in matches:
        if not match.book:
            continue
        by_book[match.book] += 1
        testament = testament_for_book(match.book)
        if testament:
            by_testament[testament] += 1
    breakdown = Breakdown(by_testament=dict(by_testament), by_book=dict(by_book))
    return None if breakdown.is_empty() else breakdown


def merge_breakdowns(breakdowns: Iterable[Optional[Breakdown]]) -> Optional[Breakdown]:
    """Sum per-token breakdowns."""
    by_book: Counter[str] = Counter()
    by_testament: Counter[str] = Counter()
    for breakdown in breakdowns:
        if breakdown is None:
            continue
        by_book.update(breakdown.by_book)
        by_testament.update(breakdown.by_testament)
    merged = Breakdown(by_testament=dict(by_testament), by_book=dict(by_book))
    return None if merged.is_empty() else merged


__all__ = [
    "JsonMatches",
    "JsonScalar",
    "MarkdownSection",
    "MarkdownSections",
    "Dialect",
    "decode_response",
    "parse_frontmatter",
    "split_markdown_sections",
    "parse_markdown",
    "extract_bold_verses",
    "first_text",
    "first_list",
    "matched_terms",
    "build_match",
    "synthesize_markdown",
    "dedupe_matches",
    "read_statistics",
    "count_breakdown",
    "merge_breakdowns",
]
