"""Translation notes provider (``fetch-translation-notes``)."""

from __future__ import annotations

from bt_study_engine.core.models import ResourceKind, ResourceResult
from bt_study_engine.services.dialects import (
    Dialect,
    JsonMatches,
    JsonScalar,
    build_match,
    first_list,
    first_text,
    matched_terms,
    parse_markdown,
    read_statistics,
    synthesize_markdown,
)
from bt_study_engine.services.providers.base import ResourceProvider


def _note_text(item: dict) -> str:
    note = first_text(item, "note", "Note", "content", "text", "OccurrenceNote")
    quote = first_text(item, "quote", "Quote", "OrigQuote")
    if quote and note:
        return f"> {quote}\n\n{note}"
    return note


def decode_notes(dialect: Dialect, scope_value: str, query: str) -> ResourceResult:
    """Map a notes response to a result; markdown headings become match references."""
    del query
    if isinstance(dialect, JsonScalar):
        items = first_list(dialect.payload, "notes", "items", "data")
        if items is None:
            content = first_text(dialect.payload, "content", "markdown")
            if not content:
                return ResourceResult()
            return decode_notes(parse_markdown(content), scope_value, "")
        dialect = JsonMatches(items=items, payload=dialect.payload)

    if isinstance(dialect, JsonMatches):
        matches = [
            build_match(
                first_text(item, "reference", "ref", "Reference") or scope_value or "Bible",
                _note_text(item),
                matched_terms(item),
            )
            for item in dialect.items
        ]
        matches = [m for m in matches if m.raw_content]
        total, breakdown = read_statistics(dialect.payload.get("statistics") or dialect.payload)
        return ResourceResult(
            combined_markdown=synthesize_markdown(matches),
            matches=matches,
            total_count=total,
            breakdown=breakdown,
        )

    matches = [build_match(section.heading, section.body) for section in dialect.sections if section.body]
    total, breakdown = read_statistics(dialect.frontmatter)
    return ResourceResult(
        combined_markdown=dialect.body,
        matches=matches,
        total_count=total,
        breakdown=breakdown,
    )


class NotesProvider(ResourceProvider):
    kind = ResourceKind.NOTES
    endpoint = "fetch-translation-notes"
    decoder = staticmethod(decode_notes)


__all__ = ["NotesProvider", "decode_notes"]
