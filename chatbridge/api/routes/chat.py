"""OpenAI-compatible chat completions endpoint backed by the Messages API."""

import json
import logging
import time
import uuid
from typing import Any, AsyncIterator, Mapping, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...core import SSE_DONE, BackendError, ValidationError, format_sse_chunk
from ...core.registry import get_client
from ...messages import (
    MessagesToChatStreamAdapter,
    StreamEventKind,
    backend_error_from_event,
    chat_completions_to_messages,
    classify_event,
    is_stream_request,
    messages_to_chat_completion,
    new_chunk_id,
)

logger = logging.getLogger("chatbridge")

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def _openai_error_response(
    message: str,
    *,
    error_type: str = "invalid_request_error",
    status_code: int = 400,
    error_code: Optional[str] = None,
) -> JSONResponse:
    error: dict[str, Any] = {"message": message, "type": error_type}
    if error_code:
        error["code"] = error_code
    return JSONResponse({"error": error}, status_code=status_code)


def _backend_error_response(exc: BackendError) -> JSONResponse:
    status_code = exc.status_code if exc.status_code and exc.status_code >= 400 else 502
    return _openai_error_response(
        exc.message,
        error_type="api_error",
        status_code=status_code,
        error_code="backend_error",
    )


async def _prepend_event(
    first: Mapping[str, Any],
    rest: AsyncIterator[Mapping[str, Any]],
) -> AsyncIterator[Mapping[str, Any]]:
    """Re-attach an already pulled first event to the rest of the stream."""
    try:
        yield first
        async for event in rest:
            yield event
    finally:
        await rest.aclose()


async def _empty_events() -> AsyncIterator[Mapping[str, Any]]:
    return
    yield


async def _stream_response(
    request: Request,
    req_id: str,
    anthropic_request: Mapping[str, Any],
    requested_model: str,
) -> Response:
    client = get_client()
    events = client.stream_message(anthropic_request)

    # Pull the first event before committing to a 200 so that connection
    # errors, error statuses and a leading error event still produce a
    # proper error response.
    try:
        first = await events.__anext__()
    except StopAsyncIteration:
        source: AsyncIterator[Mapping[str, Any]] = _empty_events()
    except BackendError as exc:
        logger.error(f"[{req_id}] Backend error before stream start: {exc.message}")
        return _backend_error_response(exc)
    else:
        if classify_event(first) is StreamEventKind.ERROR:
            await events.aclose()
            exc = backend_error_from_event(first)
            logger.error(f"[{req_id}] Backend error event before stream start: {exc.message}")
            return _backend_error_response(exc)
        source = _prepend_event(first, events)

    adapter = MessagesToChatStreamAdapter(new_chunk_id(), requested_model)
    start_time = time.perf_counter()

    async def sse_stream() -> AsyncIterator[bytes]:
        chunks = adapter.adapt_stream(source)
        chunk_count = 0
        try:
            async for chunk in chunks:
                if await request.is_disconnected():
                    logger.info(f"[{req_id}] Client disconnected after {chunk_count} chunks")
                    return
                chunk_count += 1
                yield format_sse_chunk(chunk)
            yield SSE_DONE
            elapsed = time.perf_counter() - start_time
            logger.info(
                f"[{req_id}] Completed streaming response for {requested_model}: "
                f"{chunk_count} chunks in {elapsed:.3f}s"
            )
        except BackendError as exc:
            logger.error(f"[{req_id}] Backend error mid-stream: {exc.message}")
            raise
        finally:
            await chunks.aclose()

    return StreamingResponse(
        sse_stream(),
        headers=STREAM_HEADERS,
        media_type="text/event-stream",
    )


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions
    """
    req_id = uuid.uuid4().hex[:8]
    start_time = time.perf_counter()
    logger.info(f"[{req_id}] Received chat completions request")

    body = await request.body()
    try:
        payload = json.loads(body or b"{}")
    except json.JSONDecodeError as exc:
        logger.error(f"[{req_id}] Invalid JSON payload: {exc}")
        return _openai_error_response("Invalid JSON payload", error_code="invalid_json")

    if not isinstance(payload, Mapping):
        logger.error(f"[{req_id}] Payload must be a JSON object")
        return _openai_error_response(
            "Request body must be a JSON object",
            error_code="invalid_json_shape",
        )

    try:
        anthropic_request = chat_completions_to_messages(
            payload, getattr(request.app.state, "model_map", None)
        )
    except ValidationError as exc:
        logger.error(f"[{req_id}] Invalid chat request: {exc.message}")
        return _openai_error_response(exc.message, error_code=exc.code)

    requested_model = payload["model"]
    is_stream = is_stream_request(payload)
    logger.info(
        f"[{req_id}] Processing request for model {requested_model} "
        f"(backend model {anthropic_request['model']}), stream={is_stream}"
    )

    if is_stream:
        return await _stream_response(request, req_id, anthropic_request, requested_model)

    try:
        result = await get_client().create_message(anthropic_request)
    except BackendError as exc:
        logger.error(f"[{req_id}] Backend error: {exc.message}")
        return _backend_error_response(exc)

    response = messages_to_chat_completion(result, requested_model)
    elapsed = time.perf_counter() - start_time
    logger.info(
        f"[{req_id}] Completed non-streaming response for {requested_model}, "
        f"finish_reason={response['choices'][0]['finish_reason']}, took {elapsed:.3f}s"
    )
    return JSONResponse(response)
