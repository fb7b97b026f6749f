"""Main FastAPI application for the chat bridge."""

import logging
from typing import Any, Mapping, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import chat_completions, health, list_models
from .config_loader import load_config
from .core import Backend, MessagesClient
from .core.registry import set_client
from .logging import setup_logging
from .messages import ModelMap, configured_model_ids

logger = logging.getLogger("chatbridge")


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        config: Parsed configuration; loaded from disk when omitted.
        transport: Optional httpx transport for the backend client
            (used to point the bridge at an in-process fake backend).

    Returns:
        The configured FastAPI application instance.

    Raises:
        ConfigurationError: If the backend section is unusable.
    """
    if config is None:
        config = load_config()

    server_cfg = config.get("server") or {}
    setup_logging(server_cfg.get("log_level", "INFO"))

    backend = Backend.from_config(config)
    set_client(MessagesClient(backend, transport=transport))
    model_map = ModelMap.from_config(config)

    app = FastAPI(title="chatbridge")
    app.state.config = config
    app.state.model_map = model_map

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.on_event("startup")
    async def startup_event():
        """Handle application startup."""
        logger.info("chatbridge starting up...")
        logger.info(f"Backend: {backend.build_url()}")
        logger.info(f"Advertised models: {configured_model_ids(config)}")
        if model_map is None:
            logger.info("Model names are passed through unchanged")
        else:
            logger.info(
                f"Model renaming enabled: {len(model_map.aliases)} alias(es), "
                f"default {model_map.default_model}"
            )

    app.post("/v1/chat/completions")(chat_completions)
    app.get("/v1/models")(list_models)
    app.get("/health")(health)

    logger.info("FastAPI application created")
    return app


__all__ = ["create_app"]
