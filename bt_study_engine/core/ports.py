"""Protocol definitions for infrastructure adapters."""

# pylint: disable=unnecessary-ellipsis

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Protocol


@dataclass(frozen=True, slots=True)
class ProviderResponse:
    """Successful (2xx) response body from a resource provider."""

    status_code: int
    content_type: str
    text: str

    @property
    def is_json(self) -> bool:
        """True when the provider declared a JSON body."""
        return "application/json" in self.content_type.lower()


class ResourceProviderPort(Protocol):
    """Port issuing GET requests against the Translation Helps resource service."""

    async def fetch(self, endpoint: str, params: Mapping[str, str]) -> ProviderResponse | None:
        """Return the response for ``endpoint`` or ``None`` for non-2xx statuses.

        Transport failures raise :class:`ProviderRequestError`.
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        ...


class ChatBackendPort(Protocol):
    """Port streaming a chat turn from the conversational backend."""

    def stream_chat(self, payload: Mapping[str, Any]) -> AsyncIterator[bytes]:
        """Yield raw response chunks for ``payload`` as they arrive."""
        ...


__all__ = ["ProviderResponse", "ResourceProviderPort", "ChatBackendPort"]
