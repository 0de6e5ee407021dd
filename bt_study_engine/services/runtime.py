"""Process-wide registry for the active :class:`ServiceContainer`.

The FastAPI lifespan and the CLI register a container at startup; handlers
resolve the tool dispatcher through here instead of building adapters.
Tests install containers backed by stub ports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from . import ServiceContainer

if TYPE_CHECKING:  # pragma: no cover - type narrowing only
    from .tool_dispatch import ToolDispatcher

_registry: dict[str, Optional[ServiceContainer]] = {"services": None}


def set_services(container: ServiceContainer) -> None:
    """Register the active service container."""
    _registry["services"] = container


def get_services() -> ServiceContainer:
    """Return the registered container or raise if none was configured."""
    container = _registry.get("services")
    if container is None:
        raise RuntimeError("Service container has not been configured.")
    return container


def get_dispatcher() -> "ToolDispatcher":
    """Return the registered tool dispatcher."""
    dispatcher = get_services().dispatcher
    if dispatcher is None:
        raise RuntimeError("No resource provider is configured for tool dispatch.")
    return dispatcher


def clear_services() -> None:
    _registry["services"] = None


__all__ = ["set_services", "get_services", "get_dispatcher", "clear_services"]
