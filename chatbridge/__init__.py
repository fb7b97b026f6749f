"""chatbridge - OpenAI Chat Completions facade for the Anthropic Messages API

Lets clients built for the OpenAI chat completions protocol (request,
response and SSE chunks) drive a backend that only speaks Messages.

This module provides:
- Request/response translation between the two protocols
- A streaming reassembler turning Messages events into OpenAI chunks
- A Messages API client (unary and streaming)
- An OpenAI-compatible FastAPI application

Example:
    >>> from chatbridge import create_app, load_config
    >>> import uvicorn
    >>> uvicorn.run(create_app(load_config()), host="0.0.0.0", port=8000)
"""

from .config_loader import load_config
from .core import Backend, BackendError, MessagesClient, ValidationError
from .logging import setup_logging
from .main import create_app

__all__ = [
    "Backend",
    "BackendError",
    "MessagesClient",
    "ValidationError",
    "create_app",
    "load_config",
    "setup_logging",
]
