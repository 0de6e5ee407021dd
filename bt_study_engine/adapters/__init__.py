"""Infrastructure adapter exports."""

from bt_study_engine.core.exceptions import (  # noqa: F401
    ChatBackendError,
    ProviderRequestError,
)

from .chat_backend import ChatBackendAdapter
from .translation_helps import TranslationHelpsAdapter

__all__ = [
    "ChatBackendAdapter",
    "TranslationHelpsAdapter",
    "ChatBackendError",
    "ProviderRequestError",
]
