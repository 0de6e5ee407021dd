"""Router namespace exports for FastAPI include hooks."""

from . import health, replay, scope, search, tools

__all__ = ["health", "replay", "scope", "search", "tools"]
