"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


# =============================================================================
# Backend event builders
# =============================================================================


def message_start(message_id: str = "msg_01", model: str = "claude-3-5-sonnet-20241022") -> dict[str, Any]:
    return {
        "type": "message_start",
        "message": {
            "id": message_id,
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": model,
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": 10, "output_tokens": 1},
        },
    }


def text_delta(text: str, index: int = 0) -> dict[str, Any]:
    return {
        "type": "content_block_delta",
        "index": index,
        "delta": {"type": "text_delta", "text": text},
    }


def message_stop() -> dict[str, Any]:
    return {"type": "message_stop"}


def full_event_sequence(*texts: str) -> list[dict[str, Any]]:
    """A realistic Messages stream: start, one text block, delta, stop."""
    events: list[dict[str, Any]] = [
        message_start(),
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        {"type": "ping"},
    ]
    events.extend(text_delta(text) for text in texts)
    events.extend([
        {"type": "content_block_stop", "index": 0},
        {
            "type": "message_delta",
            "delta": {"stop_reason": "end_turn", "stop_sequence": None},
            "usage": {"output_tokens": 5},
        },
        message_stop(),
    ])
    return events


def encode_sse(events: list[dict[str, Any]]) -> bytes:
    """Encode backend events the way the Messages API sends them."""
    parts = []
    for event in events:
        parts.append(f"event: {event['type']}\ndata: {json.dumps(event)}\n\n")
    return "".join(parts).encode("utf-8")


def messages_response(
    text: str = "Hello there!",
    *,
    stop_reason: str | None = "end_turn",
    input_tokens: int = 10,
    output_tokens: int = 5,
) -> dict[str, Any]:
    return {
        "id": "msg_01XFDUDYJgAACzvnptvVoYEL",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-5-sonnet-20241022",
        "content": [{"type": "text", "text": text}],
        "stop_reason": stop_reason,
        "stop_sequence": None,
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }


async def aiter_events(events: list[dict[str, Any]]):
    """Helper to create async iterator from list of events."""
    for event in events:
        yield event


# =============================================================================
# Fake Messages backend
# =============================================================================


class FakeMessagesBackend:
    """Records requests and answers them from a queue of canned responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Callable[[httpx.Request], httpx.Response]] = []

    def queue_json(self, payload: dict[str, Any], status_code: int = 200) -> None:
        self.responses.append(httpx.Response(status_code, json=payload))

    def queue_stream(self, events: list[dict[str, Any]]) -> None:
        self.responses.append(
            httpx.Response(
                200,
                content=encode_sse(events),
                headers={"content-type": "text/event-stream"},
            )
        )

    def queue_error(self, status_code: int, message: str, error_type: str = "api_error") -> None:
        self.queue_json(
            {"type": "error", "error": {"type": error_type, "message": message}},
            status_code=status_code,
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(500, json={"error": {"message": "no response queued"}})
        response = self.responses.pop(0)
        if callable(response):
            return response(request)
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_body(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def fake_backend() -> FakeMessagesBackend:
    return FakeMessagesBackend()


@pytest.fixture
def base_config() -> dict[str, Any]:
    return {
        "backend": {
            "api_base": "http://backend.local",
            "api_key": "test-key",
            "anthropic_version": "2023-06-01",
            "timeout": 5,
        },
        "server": {"host": "127.0.0.1", "port": 9999, "log_level": "DEBUG"},
        "models": ["claude-3-5-sonnet-20241022", "claude-3-5-haiku-20241022"],
    }
