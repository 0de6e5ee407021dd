"""Translation academy provider (``fetch-translation-academy``); global, not scoped."""

from __future__ import annotations

import re

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

_TITLE_RE = re.compile(r"^#[ \t]+(.+?)[ \t]*$", re.MULTILINE)


def decode_academy(dialect: Dialect, module_id: str, query: str) -> ResourceResult:
    """Map an academy response; articles are titled by heading, title or module id.

    A markdown body is one article and yields a single match; its ``##``
    subheadings are part of the article rather than separate hits.
    """
    fallback = module_id or query
    if isinstance(dialect, JsonMatches):
        matches = [
            build_match(
                first_text(item, "title", "moduleId", "id", "reference") or fallback,
                first_text(item, "content", "text", "markdown", "body"),
            )
            for item in dialect.items
        ]
        matches = [m for m in matches if m.raw_content]
        return ResourceResult(combined_markdown=synthesize_markdown(matches), matches=matches)
    if isinstance(dialect, JsonScalar):
        payload = dialect.payload
        title = first_text(payload, "title", "name", "moduleId", "id") or fallback
        body = first_text(payload, "content", "text", "markdown", "body")
        if not body:
            return ResourceResult()
        return ResourceResult(
            combined_markdown=f"## {title}\n\n{body}",
            matches=[build_match(title, body)],
        )
    if not dialect.body:
        return ResourceResult()
    heading = _TITLE_RE.search(dialect.body)
    title = heading.group(1) if heading else fallback
    return ResourceResult(
        combined_markdown=dialect.body,
        matches=[build_match(title, dialect.body)],
    )


class AcademyProvider(ResourceProvider):
    """Academy articles searched by filter or looked up by module id."""

    kind = ResourceKind.ACADEMY
    endpoint = "fetch-translation-academy"
    decoder = staticmethod(decode_academy)

    async def lookup(self, module_id: str, prefs: ResourcePreferences) -> ResourceResult:
        params = {
            "moduleId": module_id,
            "language": prefs.language,
            "organization": prefs.organization,
        }
        return await self.request(params, module_id, "")


__all__ = ["AcademyProvider", "decode_academy"]
