"""SSE (Server-Sent Events) decoding and encoding utilities.

Decoding is used on the backend side (Messages API event stream); encoding
is used on the caller side (OpenAI-style ``data:`` chunks).
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

logger = logging.getLogger("chatbridge")

SSE_DONE = b"data: [DONE]\n\n"


@dataclass
class SSEEvent:
    event: Optional[str]
    data: Optional[str]
    other_lines: list[str] = field(default_factory=list)


class SSEDecoder:
    """Incremental SSE decoder; events may span arbitrary chunk boundaries."""

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[SSEEvent]:
        if not chunk:
            return []
        text = chunk.decode("utf-8", errors="replace")
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        self._buffer += text
        events: list[SSEEvent] = []

        while True:
            sep_index = self._buffer.find("\n\n")
            if sep_index == -1:
                break
            raw_event = self._buffer[:sep_index]
            self._buffer = self._buffer[sep_index + 2:]
            if not raw_event.strip():
                continue
            events.append(self._parse_event(raw_event))

        return events

    def flush(self) -> Optional[SSEEvent]:
        """Return the trailing event that was never blank-line terminated."""
        if not self._buffer.strip():
            self._buffer = ""
            return None
        leftover = self._buffer
        self._buffer = ""
        return self._parse_event(leftover)

    @staticmethod
    def _parse_event(raw: str) -> SSEEvent:
        event_name: Optional[str] = None
        data_lines: list[str] = []
        other_lines: list[str] = []
        for line in raw.split("\n"):
            if line.startswith("data:"):
                data_lines.append(line[5:].lstrip())
            elif line.startswith("event:"):
                event_name = line[6:].strip()
            elif line:
                other_lines.append(line)
        data = "\n".join(data_lines) if data_lines else None
        return SSEEvent(event=event_name, data=data, other_lines=other_lines)


class SSEJSONDecoder:
    """Decode SSE bytes straight into JSON payload dicts.

    Blank payloads, the ``[DONE]`` sentinel, comment-only events and
    payloads that are not JSON objects are skipped.
    """

    def __init__(self) -> None:
        self._decoder = SSEDecoder()

    def feed(self, chunk: bytes) -> list[dict[str, Any]]:
        return self._decode_events(self._decoder.feed(chunk))

    def flush(self) -> list[dict[str, Any]]:
        event = self._decoder.flush()
        if event is None:
            return []
        return self._decode_events([event])

    @staticmethod
    def _decode_events(events: list[SSEEvent]) -> list[dict[str, Any]]:
        payloads: list[dict[str, Any]] = []
        for event in events:
            data = (event.data or "").strip()
            if not data or data == "[DONE]":
                continue
            try:
                parsed = json.loads(data)
            except json.JSONDecodeError:
                logger.debug(f"SSEJSONDecoder: Failed to parse: {data[:100]}")
                continue
            if isinstance(parsed, dict):
                payloads.append(parsed)
        return payloads


def format_sse_chunk(chunk: Mapping[str, Any]) -> bytes:
    """Serialize one OpenAI-style chunk as an SSE ``data:`` event."""
    json_str = json.dumps(chunk, ensure_ascii=False)
    return f"data: {json_str}\n\n".encode("utf-8")
