"""Messages API backend configuration and client."""

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional

import httpx

from .exceptions import BackendError, ConfigurationError
from .sse import SSEJSONDecoder

logger = logging.getLogger("chatbridge")

DEFAULT_API_BASE = "https://api.anthropic.com"
DEFAULT_ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 60
MESSAGES_PATH = "/v1/messages"


@dataclass
class Backend:
    """Connection settings for the Messages API backend."""

    api_key: str
    base_url: str = DEFAULT_API_BASE
    anthropic_version: str = DEFAULT_ANTHROPIC_VERSION
    timeout: Optional[float] = DEFAULT_TIMEOUT

    def build_url(self, path: str = MESSAGES_PATH) -> str:
        """Build the full URL for a backend request.

        ``base_url`` may or may not already end in ``/v1``.
        """
        base = self.base_url.rstrip("/")
        normalized_path = path if path.startswith("/") else f"/{path}"
        if base.endswith("/v1") and normalized_path.startswith("/v1"):
            normalized_path = normalized_path[len("/v1"):]
        return f"{base}{normalized_path}"

    def build_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.anthropic_version,
            "content-type": "application/json",
            "accept-encoding": "identity",
        }

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Backend":
        """Build the backend from the ``backend`` config section.

        Raises:
            ConfigurationError: If no API key is configured
        """
        section = config.get("backend") or {}
        api_key = section.get("api_key")
        if not api_key or str(api_key).startswith("$"):
            raise ConfigurationError(
                "backend.api_key is required (set CLAUDE_API_KEY or edit the config)"
            )
        timeout = section.get("timeout", DEFAULT_TIMEOUT)
        return cls(
            api_key=str(api_key),
            base_url=str(section.get("api_base") or DEFAULT_API_BASE),
            anthropic_version=str(section.get("anthropic_version") or DEFAULT_ANTHROPIC_VERSION),
            timeout=float(timeout) if timeout is not None else None,
        )


def format_httpx_error(exc: Any, backend: Backend, url: Optional[str] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    if url:
        parts.append(f"url={url}")

    if isinstance(exc, httpx.TimeoutException):
        timeout = backend.timeout or DEFAULT_TIMEOUT
        parts.append(f"timeout={timeout}s")

    return "; ".join(parts)


def _error_from_response(status_code: int, body: bytes) -> BackendError:
    """Build a BackendError from a non-2xx Messages API response."""
    message = f"backend returned status {status_code}"
    try:
        parsed = json.loads(body or b"{}")
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        error = parsed.get("error")
        if isinstance(error, dict) and error.get("message"):
            message = f"{message}: {error['message']}"
    return BackendError(message, status_code=status_code, body=body)


class MessagesClient:
    """Calls the Anthropic Messages API, unary or streaming.

    No retries are performed; any failure surfaces as BackendError.
    """

    def __init__(
        self,
        backend: Backend,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.backend = backend
        self.transport = transport

    def _client(self, timeout: httpx.Timeout | float | None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout, transport=self.transport, follow_redirects=True
        )

    async def create_message(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Make a non-streaming request to the Messages API.

        Raises:
            BackendError: On transport failure or error status
        """
        url = self.backend.build_url()
        body = json.dumps(request, ensure_ascii=False).encode("utf-8")
        logger.debug(f"Initiating non-streaming request to {url}")

        try:
            async with self._client(self.backend.timeout) as client:
                resp = await client.post(url, headers=self.backend.build_headers(), content=body)
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, self.backend, url)
            logger.error(f"Messages request to {url} failed: {detail}")
            raise BackendError(detail) from exc

        logger.debug(f"Received response from {url}: status {resp.status_code}")
        if resp.status_code >= 400:
            raise _error_from_response(resp.status_code, resp.content)

        try:
            return resp.json()
        except json.JSONDecodeError as exc:
            raise BackendError(
                f"backend returned invalid JSON: {exc}",
                status_code=resp.status_code,
                body=resp.content,
            ) from exc

    async def stream_message(self, request: Mapping[str, Any]) -> AsyncIterator[dict[str, Any]]:
        """Make a streaming request and yield decoded Messages stream events.

        ``stream: true`` is added to the outbound body only; the translated
        request never carries it. The HTTP response is closed when this
        generator finishes or is closed by the consumer.

        Raises:
            BackendError: On transport failure or error status
        """
        url = self.backend.build_url()
        outbound = dict(request)
        outbound["stream"] = True
        body = json.dumps(outbound, ensure_ascii=False).encode("utf-8")

        timeout = self.backend.timeout
        stream_timeout = httpx.Timeout(connect=timeout, read=None, write=timeout, pool=timeout)
        client = self._client(stream_timeout)
        resp: Optional[httpx.Response] = None
        try:
            try:
                http_request = client.build_request(
                    "POST", url, headers=self.backend.build_headers(), content=body
                )
                logger.debug(f"Sending streaming request to {url}")
                resp = await client.send(http_request, stream=True)
            except httpx.HTTPError as exc:
                detail = format_httpx_error(exc, self.backend, url)
                logger.error(f"Failed to send streaming request to {url}: {detail}")
                raise BackendError(detail) from exc

            if resp.status_code >= 400:
                data = await resp.aread()
                logger.warning(f"Streaming request to {url} returned error status {resp.status_code}")
                raise _error_from_response(resp.status_code, data)

            logger.info(f"Streaming request to {url} successful, status {resp.status_code}")
            decoder = SSEJSONDecoder()
            try:
                async for chunk in resp.aiter_bytes():
                    for event in decoder.feed(chunk):
                        yield event
            except httpx.HTTPError as exc:
                detail = format_httpx_error(exc, self.backend, url)
                logger.error(f"Stream from {url} failed mid-response: {detail}")
                raise BackendError(detail) from exc
            for event in decoder.flush():
                yield event
        finally:
            logger.debug(f"Closing stream for {url}")
            if resp is not None:
                await resp.aclose()
            await client.aclose()
