"""Translation word links provider (``fetch-translation-word-links``)."""

from __future__ import annotations

from typing import Sequence

from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import (
    ResourceKind,
    ResourcePreferences,
    ResourceResult,
    ScopeToken,
    ScopeType,
)
from bt_study_engine.services.dialects import (
    Dialect,
    JsonMatches,
    JsonScalar,
    build_match,
    first_list,
    first_text,
    synthesize_markdown,
)
from bt_study_engine.services.providers.base import ResourceProvider

logger = get_logger(__name__)

# Upstream only answers verse and chapter references.
SUPPORTED_SCOPES: frozenset[ScopeType] = frozenset({ScopeType.VERSE, ScopeType.CHAPTER})


def _link_text(item: dict) -> str:
    word = first_text(item, "word", "Word", "term", "OrigWords", "text")
    article = first_text(item, "articleId", "article", "rc", "TWLink", "link")
    if word and article:
        return f"{word} ({article})"
    return word or article


def decode_word_links(dialect: Dialect, scope_value: str, query: str) -> ResourceResult:
    """Map a word-links response to one match per linked word."""
    del query
    if isinstance(dialect, JsonScalar):
        items = first_list(dialect.payload, "links", "words", "items", "data")
        dialect = JsonMatches(items=items or [], payload=dialect.payload)
    if isinstance(dialect, JsonMatches):
        matches = [
            build_match(first_text(item, "reference", "ref", "Reference") or scope_value, _link_text(item))
            for item in dialect.items
        ]
        matches = [m for m in matches if m.raw_content]
        return ResourceResult(combined_markdown=synthesize_markdown(matches), matches=matches)
    matches = [build_match(section.heading, section.body) for section in dialect.sections if section.body]
    return ResourceResult(combined_markdown=dialect.body, matches=matches)


class WordLinksProvider(ResourceProvider):
    """Word links for verse or chapter scopes; broader scopes yield nothing."""

    kind = ResourceKind.WORD_LINKS
    endpoint = "fetch-translation-word-links"
    decoder = staticmethod(decode_word_links)

    async def search_all(
        self, tokens: Sequence[ScopeToken], query: str, prefs: ResourcePreferences
    ) -> ResourceResult:
        if any(token.kind not in SUPPORTED_SCOPES for token in tokens):
            logger.info(
                "%s skipping scope broader than a chapter: %s",
                self.log_prefix,
                [token.value for token in tokens],
            )
            return ResourceResult()
        return await super().search_all(tokens, query, prefs)


__all__ = ["WordLinksProvider", "decode_word_links", "SUPPORTED_SCOPES"]
