"""ASGI factory serving the study API with production adapters.

Run with ``uvicorn bt_study_engine.api_factory:create_app --factory``.
"""

from __future__ import annotations

from fastapi import FastAPI

from bt_study_engine.apps.api.app import create_app as build_app
from bt_study_engine.bootstrap import build_default_service_container


def create_app() -> FastAPI:
    """Return the API wired to the Translation Helps and chat backend adapters."""
    return build_app(build_default_service_container())


__all__ = ["create_app"]
