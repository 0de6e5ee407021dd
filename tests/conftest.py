"""Pytest configuration: ensure env vars and import path are set early.

This runs before any tests, so modules can import without local path hacks.
Also load .env before setting defaults so local overrides are honored.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Mapping

import pytest
from dotenv import load_dotenv

# Ensure repository root is on sys.path for local package imports
sys.path.append(str(Path(__file__).resolve().parents[1]))

load_dotenv(override=False)

# Deterministic defaults; tests never reach the real services.
os.environ.setdefault("MCP_BASE_URL", "https://mcp.test")
os.environ.setdefault("DEFAULT_LANGUAGE", "en")
os.environ.setdefault("DEFAULT_ORGANIZATION", "unfoldingWord")
os.environ.setdefault("DEFAULT_RESOURCE", "ult")
os.environ.setdefault("BT_STUDY_LOG_LEVEL", "warning")

from bt_study_engine.core.ports import ProviderResponse  # noqa: E402  pylint: disable=wrong-import-position

Responder = Callable[[str, dict[str, str]], Any]


class StubProvider:
    """In-memory resource provider port.

    ``responder(endpoint, params)`` returns a ``ProviderResponse``, ``None``
    (non-2xx), or raises to simulate a transport failure. Every call is
    recorded in ``calls``.
    """

    def __init__(self, responder: Responder) -> None:
        self._responder = responder
        self.calls: list[tuple[str, dict[str, str]]] = []
        self.closed = False

    async def fetch(self, endpoint: str, params: Mapping[str, str]) -> ProviderResponse | None:
        params = dict(params)
        self.calls.append((endpoint, params))
        return self._responder(endpoint, params)

    async def aclose(self) -> None:
        self.closed = True


def json_response(payload: str) -> ProviderResponse:
    return ProviderResponse(status_code=200, content_type="application/json", text=payload)


def markdown_response(text: str) -> ProviderResponse:
    return ProviderResponse(status_code=200, content_type="text/markdown; charset=utf-8", text=text)


@pytest.fixture
def make_provider() -> Callable[[Responder], StubProvider]:
    """Factory for :class:`StubProvider` instances."""
    return StubProvider


@pytest.fixture
def json_body() -> Callable[[str], ProviderResponse]:
    return json_response


@pytest.fixture
def markdown_body() -> Callable[[str], ProviderResponse]:
    return markdown_response
