"""Scripture text provider (``fetch-scripture``)."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from bt_study_engine.core.exceptions import MalformedPayloadError
from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import (
    PassageResult,
    ResourceKind,
    ResourcePreferences,
    ResourceResult,
    ScriptureVerse,
)
from bt_study_engine.services.dialects import (
    Dialect,
    JsonMatches,
    JsonScalar,
    build_match,
    count_breakdown,
    extract_bold_verses,
    first_text,
    matched_terms,
    parse_frontmatter,
    read_statistics,
    synthesize_markdown,
)
from bt_study_engine.services.providers.base import ResourceProvider

logger = get_logger(__name__)

_VERSE_NUMBER_RE = re.compile(r"\*{0,2}(\d+)\*{0,2}[ \t]+([^*\d][^\n]*)")
_USFM_VERSE_RE = re.compile(r"\\v\s+(\d+)\s+([^\\]+)")
_USFM_MARKER_RE = re.compile(r"\\[a-z]+\d*\*?\s*")


def decode_scripture(dialect: Dialect, scope_value: str, query: str) -> ResourceResult:
    """Map any scripture dialect to a result with a per-book breakdown."""
    del query
    if isinstance(dialect, JsonMatches):
        matches = [
            build_match(
                first_text(item, "reference") or scope_value,
                first_text(item, "text", "content"),
                matched_terms(item),
            )
            for item in dialect.items
        ]
        matches = [m for m in matches if m.raw_content]
        total, breakdown = read_statistics(dialect.payload.get("statistics"))
        return ResourceResult(
            combined_markdown=synthesize_markdown(matches),
            matches=matches,
            total_count=total,
            breakdown=breakdown or count_breakdown(matches),
        )
    if isinstance(dialect, JsonScalar):
        text = first_text(dialect.payload, "text", "content", "scripture")
        if not text:
            return ResourceResult()
        match = build_match(first_text(dialect.payload, "reference") or scope_value, text)
        return ResourceResult(combined_markdown=synthesize_markdown([match]), matches=[match])

    pairs = extract_bold_verses(dialect.body)
    if pairs:
        matches = [build_match(reference, text) for reference, text in pairs]
    else:
        matches = [build_match(section.heading, section.body) for section in dialect.sections if section.body]
    total, breakdown = read_statistics(dialect.frontmatter)
    return ResourceResult(
        combined_markdown=dialect.body,
        matches=matches,
        total_count=total,
        breakdown=breakdown or count_breakdown(matches),
    )


def extract_verses(content: str) -> list[ScriptureVerse]:
    """Pull numbered verses from USFM ``\\v`` markers or bold-number text.

    Content with neither yields a single verse holding the cleaned text.
    """
    verses: list[ScriptureVerse] = []
    if "\\v " in content:
        verses = [
            ScriptureVerse(number=int(number), text=re.sub(r"\s+", " ", text).strip())
            for number, text in _USFM_VERSE_RE.findall(content)
        ]
    if not verses:
        verses = [
            ScriptureVerse(number=int(number), text=text.strip())
            for number, text in _VERSE_NUMBER_RE.findall(content)
        ]
    if not verses:
        cleaned = _USFM_MARKER_RE.sub("", content).replace("**", "").strip()
        if cleaned:
            verses = [ScriptureVerse(number=1, text=cleaned)]
    return verses


def _coerce_verses(value: Any) -> list[ScriptureVerse]:
    verses: list[ScriptureVerse] = []
    if not isinstance(value, list):
        return verses
    for entry in value:
        if not isinstance(entry, dict):
            continue
        try:
            number = int(entry.get("number", entry.get("verse")))
        except (TypeError, ValueError):
            continue
        verses.append(ScriptureVerse(number=number, text=str(entry.get("text", ""))))
    return verses


class ScriptureProvider(ResourceProvider):
    """Scripture search plus plain passage lookup."""

    kind = ResourceKind.SCRIPTURE
    endpoint = "fetch-scripture"
    decoder = staticmethod(decode_scripture)
    sends_resource = True

    async def fetch_passage(
        self, reference: str, prefs: ResourcePreferences
    ) -> Optional[PassageResult]:
        """Fetch ``reference`` without a filter; ``None`` when nothing usable comes back."""
        params = {
            "reference": reference,
            "language": prefs.language,
            "organization": prefs.organization,
            "resource": prefs.resource,
        }
        response = await self._port.fetch(self.endpoint, params)
        if response is None:
            logger.info("%s no passage for %s", self.log_prefix, reference)
            return None

        if response.is_json:
            try:
                data = json.loads(response.text)
            except json.JSONDecodeError as exc:
                raise MalformedPayloadError(f"invalid passage JSON: {exc}") from exc
            if not isinstance(data, dict):
                raise MalformedPayloadError("passage payload is not an object")
            raw = first_text(data, "text", "content", "scripture")
            if not raw:
                return None
            verses = _coerce_verses(data.get("verses")) or extract_verses(raw)
            return PassageResult(
                reference=first_text(data, "reference") or reference,
                raw_content=raw,
                verses=verses,
                translation=first_text(data, "translation") or prefs.resource,
                book=data.get("book"),
                metadata=data.get("metadata") if isinstance(data.get("metadata"), dict) else None,
            )

        frontmatter, body = parse_frontmatter(response.text)
        raw = body.strip()
        if not raw:
            return None
        return PassageResult(
            reference=reference,
            raw_content=raw,
            verses=extract_verses(raw),
            translation=prefs.resource,
            metadata=frontmatter or None,
        )


__all__ = ["ScriptureProvider", "decode_scripture", "extract_verses"]
