"""Translation words provider (``fetch-translation-word``); global, not scoped."""

from __future__ import annotations

from typing import Optional

from bt_study_engine.core.models import ResourceKind, ResourcePreferences, ResourceResult
from bt_study_engine.services.dialects import (
    Dialect,
    JsonMatches,
    JsonScalar,
    build_match,
    first_text,
    synthesize_markdown,
)
from bt_study_engine.services.providers.base import ResourceProvider


def decode_words(dialect: Dialect, term: str, query: str) -> ResourceResult:
    """Map a word-article response; ``term`` names the match when upstream omits it.

    A markdown body is one article, so it becomes a single match even when it
    carries ``##`` subheadings such as "Definition" or "Translation Suggestions".
    """
    fallback = term or query
    if isinstance(dialect, JsonMatches):
        matches = [
            build_match(
                first_text(item, "term", "reference", "title") or fallback,
                first_text(item, "definition", "content", "text"),
            )
            for item in dialect.items
        ]
        matches = [m for m in matches if m.raw_content]
        return ResourceResult(combined_markdown=synthesize_markdown(matches), matches=matches)
    if isinstance(dialect, JsonScalar):
        payload = dialect.payload
        name = first_text(payload, "term", "title", "name") or fallback
        body = first_text(payload, "definition", "content", "text", "markdown")
        if not body:
            return ResourceResult()
        return ResourceResult(
            combined_markdown=f"## {name}\n\n{body}",
            matches=[build_match(name, body)],
        )
    if not dialect.body:
        return ResourceResult()
    return ResourceResult(
        combined_markdown=dialect.body,
        matches=[build_match(fallback, dialect.body)],
    )


class WordsProvider(ResourceProvider):
    """Word articles searched by filter or looked up by term."""

    kind = ResourceKind.WORDS
    endpoint = "fetch-translation-word"
    decoder = staticmethod(decode_words)

    async def lookup(
        self, term: str, prefs: ResourcePreferences, reference: Optional[str] = None
    ) -> ResourceResult:
        """Fetch the article for ``term``, optionally scoped to ``reference``."""
        params = {"term": term, "language": prefs.language, "organization": prefs.organization}
        if reference:
            params["reference"] = reference
        return await self.request(params, term, "")


__all__ = ["WordsProvider", "decode_words"]
