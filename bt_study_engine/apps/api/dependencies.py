"""Shared FastAPI dependencies for service access."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from bt_study_engine.services import ServiceContainer
from bt_study_engine.services.replay import ToolCallReplayer
from bt_study_engine.services.tool_dispatch import ToolDispatcher


def get_service_container(request: Request) -> ServiceContainer:
    """Return the service container attached to the FastAPI app."""
    services = getattr(request.app.state, "services", None)
    if not isinstance(services, ServiceContainer):
        raise RuntimeError("Service container is not configured on app.state.")
    return services


def get_tool_dispatcher(request: Request) -> ToolDispatcher:
    """Return the tool dispatcher or fail with 503 when no provider is wired."""
    dispatcher = get_service_container(request).dispatcher
    if dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Resource provider is not configured",
        )
    return dispatcher


def get_replayer(request: Request) -> ToolCallReplayer:
    return ToolCallReplayer(get_tool_dispatcher(request))


__all__ = ["get_service_container", "get_tool_dispatcher", "get_replayer"]
