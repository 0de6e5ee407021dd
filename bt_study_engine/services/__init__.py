"""Application service layer: search aggregation, streaming and replay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from bt_study_engine.core.ports import ChatBackendPort, ResourceProviderPort

if TYPE_CHECKING:  # pragma: no cover - type narrowing only
    from .tool_dispatch import ToolDispatcher


@dataclass(slots=True)
class ServiceContainer:
    """Aggregate of application-level services available to handlers."""

    provider: Optional[ResourceProviderPort] = None
    chat_backend: Optional[ChatBackendPort] = None
    dispatcher: Optional["ToolDispatcher"] = None


def build_default_services(
    *,
    provider_port: Optional[ResourceProviderPort] = None,
    chat_backend_port: Optional[ChatBackendPort] = None,
) -> ServiceContainer:
    """Return a service container with the tool dispatcher bound to ``provider_port``."""

    from .tool_dispatch import ToolDispatcher  # pylint: disable=import-outside-toplevel

    dispatcher = ToolDispatcher.from_port(provider_port) if provider_port is not None else None
    return ServiceContainer(
        provider=provider_port,
        chat_backend=chat_backend_port,
        dispatcher=dispatcher,
    )


__all__ = ["ServiceContainer", "build_default_services"]
