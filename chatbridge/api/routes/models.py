"""Models listing endpoint - OpenAI compatible."""

import logging
import time

from fastapi import Request

from ...messages import configured_model_ids

logger = logging.getLogger("chatbridge")


async def list_models(request: Request) -> dict:
    """List available models in OpenAI API format.

    GET /v1/models

    Returns:
        A dictionary containing the list of available models.
    """
    logger.info("Received models list request")

    config = getattr(request.app.state, "config", None) or {}
    created = int(time.time())
    models = [
        {
            "id": model_id,
            "object": "model",
            "created": created,
            "owned_by": "anthropic",
        }
        for model_id in configured_model_ids(config)
    ]

    return {
        "object": "list",
        "data": models
    }
