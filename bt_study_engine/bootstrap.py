"""Application bootstrap helpers for assembling the service container."""

from __future__ import annotations

from bt_study_engine.adapters.chat_backend import ChatBackendAdapter
from bt_study_engine.adapters.translation_helps import TranslationHelpsAdapter
from bt_study_engine.services import ServiceContainer, build_default_services


def build_default_service_container() -> ServiceContainer:
    """Return the default service container wired to production adapters."""

    return build_default_services(
        provider_port=TranslationHelpsAdapter(),
        chat_backend_port=ChatBackendAdapter(),
    )


__all__ = ["build_default_service_container"]
