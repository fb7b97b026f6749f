"""OpenAI Chat Completions -> Anthropic Messages translation helpers.

Provides translation between OpenAI Chat Completions API format and the
Anthropic Messages API format, enabling OpenAI-style clients to drive a
Messages backend.
"""

from .models import DEFAULT_MODELS, ModelMap, configured_model_ids
from .translator import (
    chat_completions_to_messages,
    is_stream_request,
    map_stop_reason,
    messages_to_chat_completion,
)
from .stream_adapter import (
    MessagesToChatStreamAdapter,
    StreamEventKind,
    StreamState,
    adapt_messages_stream_to_chat,
    backend_error_from_event,
    classify_event,
    new_chunk_id,
    stream_event_to_chunk,
)

__all__ = [
    "DEFAULT_MODELS",
    "ModelMap",
    "MessagesToChatStreamAdapter",
    "StreamEventKind",
    "StreamState",
    "adapt_messages_stream_to_chat",
    "backend_error_from_event",
    "chat_completions_to_messages",
    "classify_event",
    "configured_model_ids",
    "is_stream_request",
    "map_stop_reason",
    "messages_to_chat_completion",
    "new_chunk_id",
    "stream_event_to_chunk",
]
