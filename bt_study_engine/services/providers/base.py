"""Shared fan-out and isolation for Translation Helps providers."""

from __future__ import annotations

import asyncio
from typing import Callable, ClassVar, Optional, Sequence

from bt_study_engine.core.exceptions import MalformedPayloadError, ProviderRequestError
from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.models import (
    GLOBAL_KINDS,
    ResourceKind,
    ResourcePreferences,
    ResourceResult,
    ScopeToken,
)
from bt_study_engine.core.ports import ResourceProviderPort
from bt_study_engine.services.dialects import Dialect, decode_response, dedupe_matches, merge_breakdowns

logger = get_logger(__name__)

MARKDOWN_SEPARATOR = "\n\n---\n\n"

# (dialect, scope value or lookup key, query) -> ResourceResult
Decoder = Callable[[Dialect, str, str], ResourceResult]


class ResourceProvider:
    """Base provider for one resource kind.

    Subclasses set ``kind``, ``endpoint`` and ``decoder``. Scope-dependent
    kinds issue one request per scope token concurrently; global kinds issue
    exactly one request and ignore the scope.
    """

    kind: ClassVar[ResourceKind]
    endpoint: ClassVar[str]
    decoder: ClassVar[Decoder]
    sends_resource: ClassVar[bool] = False

    def __init__(self, port: ResourceProviderPort) -> None:
        self._port = port

    @property
    def is_global(self) -> bool:
        return self.kind in GLOBAL_KINDS

    @property
    def log_prefix(self) -> str:
        return f"[provider:{self.kind.value}]"

    def build_params(
        self, token: Optional[ScopeToken], query: str, prefs: ResourcePreferences
    ) -> dict[str, str]:
        """Query parameters for one request."""
        params: dict[str, str] = {}
        if token is not None and not self.is_global:
            params.update(token.query_params())
        if query:
            params["filter"] = query
        params["language"] = prefs.language
        params["organization"] = prefs.organization
        if self.sends_resource:
            params["resource"] = prefs.resource
        return params

    async def request(self, params: dict[str, str], key: str, query: str) -> ResourceResult:
        """Fetch and decode one request.

        Non-2xx responses yield an empty result. Transport and payload errors
        propagate to the caller.
        """
        response = await self._port.fetch(self.endpoint, params)
        if response is None:
            return ResourceResult()
        dialect = decode_response(response)
        return type(self).decoder(dialect, key, query)

    async def search(
        self, token: Optional[ScopeToken], query: str, prefs: ResourcePreferences
    ) -> ResourceResult:
        """Search a single scope token (``None`` for global kinds)."""
        key = token.value if token is not None and not self.is_global else query
        return await self.request(self.build_params(token, query, prefs), key, query)

    async def _isolated_search(
        self, token: Optional[ScopeToken], query: str, prefs: ResourcePreferences
    ) -> ResourceResult:
        scope = token.value if token is not None else "global"
        try:
            return await self.search(token, query, prefs)
        except (ProviderRequestError, MalformedPayloadError) as exc:
            logger.warning("%s scope %s failed: %s", self.log_prefix, scope, exc)
        except Exception:  # pylint: disable=broad-except
            logger.exception("%s unexpected failure for scope %s", self.log_prefix, scope)
        return ResourceResult()

    async def search_all(
        self, tokens: Sequence[ScopeToken], query: str, prefs: ResourcePreferences
    ) -> ResourceResult:
        """Fan ``query`` out over ``tokens`` and merge the per-token results.

        A failing token contributes zero matches; cancellation propagates.
        """
        if self.is_global:
            return await self._isolated_search(None, query, prefs)
        if not tokens:
            return ResourceResult()
        results = await asyncio.gather(
            *(self._isolated_search(token, query, prefs) for token in tokens)
        )
        return merge_results(results)


def merge_results(results: Sequence[ResourceResult]) -> ResourceResult:
    """Combine per-token results into one, de-duplicating matches."""
    if len(results) == 1:
        return results[0]
    matches = dedupe_matches(match for result in results for match in result.matches)
    markdown = MARKDOWN_SEPARATOR.join(
        result.combined_markdown for result in results if result.combined_markdown.strip()
    )
    return ResourceResult(
        combined_markdown=markdown,
        matches=matches,
        total_count=sum(result.total_count for result in results),
        breakdown=merge_breakdowns(result.breakdown for result in results),
    )


__all__ = ["ResourceProvider", "Decoder", "merge_results", "MARKDOWN_SEPARATOR"]
