"""Models listing endpoint - OpenAI compatible."""

import logging
import time

from fastapi import Request

from ...types.chat import ModelCard, ModelList

logger = logging.getLogger("movement-proxy")


async def list_models(request: Request) -> dict:
    """List the single served model in OpenAI API format.

    GET /v1/models
    """
    logger.info("Received models list request")
    upstream = request.app.state.bridge.upstream
    card: ModelCard = {
        "id": upstream.model_id,
        "object": "model",
        "created": int(time.time()),
        "owned_by": upstream.owned_by,
    }
    models: ModelList = {"object": "list", "data": [card]}
    return models
