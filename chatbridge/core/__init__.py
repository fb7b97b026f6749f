"""Core module initialization."""

from .backend import Backend, MessagesClient, format_httpx_error
from .exceptions import BackendError, BridgeError, ConfigurationError, ValidationError
from .registry import get_client, set_client
from .sse import SSE_DONE, SSEDecoder, SSEJSONDecoder, format_sse_chunk

__all__ = [
    "Backend",
    "BackendError",
    "BridgeError",
    "ConfigurationError",
    "MessagesClient",
    "SSEDecoder",
    "SSEJSONDecoder",
    "SSE_DONE",
    "ValidationError",
    "format_httpx_error",
    "format_sse_chunk",
    "get_client",
    "set_client",
]
