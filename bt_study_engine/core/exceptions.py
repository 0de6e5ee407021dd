"""Core exception types shared across layers."""


class ProviderRequestError(Exception):
    """Raised when a resource provider cannot be reached or times out."""


class MalformedPayloadError(Exception):
    """Raised when a provider response cannot be decoded into a known dialect."""


class StreamProtocolError(Exception):
    """Raised when the chat stream ends on a frame that cannot be decoded."""


class ChatBackendError(Exception):
    """Raised when the conversational backend rejects a chat request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "ProviderRequestError",
    "MalformedPayloadError",
    "StreamProtocolError",
    "ChatBackendError",
]
