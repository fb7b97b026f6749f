"""OpenAI Chat Completions <-> Anthropic Messages translation.

This module translates OpenAI-format chat requests into Anthropic Messages
requests and Anthropic responses back into OpenAI chat completions, so that
OpenAI-style clients can drive a Messages-only backend.

Key mappings:
- OpenAI system messages -> Anthropic top-level system (concatenated)
- OpenAI user/assistant messages -> Anthropic turns (trimmed, blanks dropped)
- OpenAI stop -> Anthropic stop_sequences
- Anthropic text blocks -> OpenAI message content
- Anthropic stop_reason -> OpenAI finish_reason

Reference:
- Anthropic Messages API: https://docs.anthropic.com/en/api/messages
- OpenAI Chat Completions: https://platform.openai.com/docs/api-reference/chat
"""

from __future__ import annotations

import time
from typing import Any, Mapping, Optional

from ..core.exceptions import ValidationError
from ..types import AnthropicMessagesRequest, ChatCompletionResponse
from .models import ModelMap

DEFAULT_MAX_TOKENS = 4096
SYSTEM_SEPARATOR = "\n\n"

_STOP_REASON_MAP = {
    "end_turn": "stop",
    "max_tokens": "length",
    "stop_sequence": "stop",
}


def _clamp_unit(name: str, value: Any) -> float:
    # bool is an int subclass but never a valid sampling value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", code="invalid_parameter")
    return max(0.0, min(1.0, float(value)))


def _normalize_stop(stop: Any) -> list[str]:
    if isinstance(stop, str):
        return [stop] if stop else []
    if isinstance(stop, list) and all(isinstance(item, str) for item in stop):
        return list(stop)
    raise ValidationError(
        "stop must be a string or an array of strings", code="invalid_parameter"
    )


def is_stream_request(payload: Mapping[str, Any]) -> bool:
    """Return whether the caller asked for an SSE stream.

    The flag selects the backend call mode; it is never copied into the
    translated request.
    """
    return bool(payload.get("stream"))


def chat_completions_to_messages(
    payload: Mapping[str, Any],
    model_map: Optional[ModelMap] = None,
) -> AnthropicMessagesRequest:
    """Translate an OpenAI Chat Completions request to an Anthropic Messages request.

    Handles:
    - System messages -> top-level system, joined by a blank line
    - User/assistant messages -> turns with trimmed content
    - Parameter mapping (max_tokens default, clamped sampling, stop)

    Args:
        payload: OpenAI Chat Completions API request body
        model_map: Optional renaming table; None passes the model through

    Returns:
        Anthropic Messages API request body (without ``stream``)

    Raises:
        ValidationError: If messages is empty/not a list, model is missing,
            or a sampling or stop field has the wrong type
    """
    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        raise ValidationError("messages must be a non-empty array", code="invalid_messages")

    model = payload.get("model")
    if not isinstance(model, str) or not model:
        raise ValidationError("model must be a non-empty string", code="missing_parameter")

    system_parts: list[str] = []
    turns: list[dict[str, str]] = []

    for message in messages:
        if not isinstance(message, Mapping):
            continue
        role = message.get("role")
        content = message.get("content")
        if not isinstance(content, str):
            continue
        text = content.strip()
        if not text:
            continue
        if role == "system":
            system_parts.append(text)
        elif role in ("user", "assistant"):
            turns.append({"role": role, "content": text})

    if model_map is not None:
        model = model_map.resolve(model)

    max_tokens = payload.get("max_tokens")
    result: dict[str, Any] = {
        "model": model,
        "max_tokens": DEFAULT_MAX_TOKENS if max_tokens is None else max_tokens,
        "messages": turns,
    }

    system = SYSTEM_SEPARATOR.join(system_parts)
    if system:
        result["system"] = system

    for param in ("temperature", "top_p"):
        if payload.get(param) is not None:
            result[param] = _clamp_unit(param, payload[param])

    stop = payload.get("stop")
    if stop is not None:
        stop_sequences = _normalize_stop(stop)
        if stop_sequences:
            result["stop_sequences"] = stop_sequences

    return result  # type: ignore[return-value]


def map_stop_reason(stop_reason: str | None) -> str:
    """Convert Anthropic stop_reason to OpenAI finish_reason.

    Anthropic: end_turn, max_tokens, stop_sequence, tool_use, refusal, ...
    OpenAI: stop, length

    Unknown and missing reasons collapse to "stop".
    """
    if stop_reason is None:
        return "stop"
    return _STOP_REASON_MAP.get(stop_reason, "stop")


def _extract_text(content: Any) -> str:
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for block in content:
        if not isinstance(block, Mapping) or block.get("type") != "text":
            continue
        text = block.get("text")
        if isinstance(text, str):
            parts.append(text)
    return "".join(parts).strip()


def messages_to_chat_completion(
    payload: Mapping[str, Any],
    requested_model: str,
    created: Optional[int] = None,
) -> ChatCompletionResponse:
    """Translate an Anthropic Messages response to an OpenAI Chat Completion.

    Args:
        payload: Anthropic Messages API response body
        requested_model: Model name the caller asked for; echoed back
            instead of the backend's model field
        created: Unix timestamp override (defaults to now)

    Returns:
        OpenAI Chat Completions API response body
    """
    usage = payload.get("usage") or {}
    prompt_tokens = int(usage.get("input_tokens") or 0)
    completion_tokens = int(usage.get("output_tokens") or 0)

    return {
        "id": payload.get("id", ""),
        "object": "chat.completion",
        "created": int(time.time()) if created is None else created,
        "model": requested_model,
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": _extract_text(payload.get("content")),
                },
                "finish_reason": map_stop_reason(payload.get("stop_reason")),
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }
