"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from bt_study_engine.apps.api.middleware import CorrelationIdMiddleware
from bt_study_engine.core.logging import get_logger
from bt_study_engine.services import ServiceContainer, runtime

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Register services at startup and release provider connections on shutdown."""
    logger.info("Initializing bt study engine...")
    services = getattr(app.state, "services", None)
    if isinstance(services, ServiceContainer):
        runtime.set_services(services)
    try:
        yield
    finally:
        if isinstance(services, ServiceContainer) and services.provider is not None:
            await services.provider.aclose()
        logger.info("bt study engine stopped.")


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """Build the FastAPI application with configured routers."""
    if services is None:
        raise RuntimeError("Service container must be provided when creating the app.")
    app = FastAPI(title="BT Study Engine", lifespan=lifespan)
    app.state.services = services
    runtime.set_services(services)
    app.add_middleware(CorrelationIdMiddleware)

    from .routes import health, replay, scope, search, tools  # pylint: disable=import-outside-toplevel

    app.include_router(health.router)
    app.include_router(search.router)
    app.include_router(replay.router)
    app.include_router(tools.router)
    app.include_router(scope.router)
    return app


__all__ = ["create_app", "lifespan"]
