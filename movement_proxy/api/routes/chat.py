"""OpenAI-compatible chat completions endpoint."""

import json
import logging
from typing import Any, Mapping

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from ...core import InvalidRequestError, UpstreamStatusError, format_httpx_error

logger = logging.getLogger("movement-proxy")

INVALID_MESSAGES_DETAIL = 'Missing or invalid "messages" in request body'


def upstream_error_body(exc: UpstreamStatusError) -> dict[str, Any]:
    return {
        "error": {
            "message": f"Upstream API error: {exc.body}",
            "type": "upstream_error",
            "param": None,
            "code": exc.status_code,
        }
    }


def internal_error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": message},
    )


def parse_chat_request(body: bytes) -> tuple[list[Any], bool]:
    """Validate a chat request body and return ``(messages, stream)``.

    Raises:
        InvalidRequestError: ``messages`` is missing or not an array.
        json.JSONDecodeError: the body is not JSON at all.
    """
    payload = json.loads(body)
    if not isinstance(payload, Mapping):
        raise InvalidRequestError(INVALID_MESSAGES_DETAIL)

    messages = payload.get("messages")
    if not isinstance(messages, list):
        raise InvalidRequestError(INVALID_MESSAGES_DETAIL)

    return messages, bool(payload.get("stream", False))


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions

    Client errors are answered in plain text and never reach the upstream.
    Upstream failures keep the upstream status code; anything unexpected
    becomes a 500 with the failure's description.
    """
    logger.info(f"Handling {request.method} request to {request.url.path}")
    bridge = request.app.state.bridge

    try:
        body = await request.body()
        messages, is_stream = parse_chat_request(body)
        response = await bridge.forward_chat(messages, is_stream)
        logger.info(f"Chat completion request accepted, stream={is_stream}")
        return response
    except InvalidRequestError as exc:
        logger.warning(f"Rejected chat request: {exc.message}")
        return PlainTextResponse(exc.message, status_code=exc.status_code)
    except UpstreamStatusError as exc:
        return JSONResponse(status_code=exc.status_code, content=upstream_error_body(exc))
    except httpx.HTTPError as exc:
        detail = format_httpx_error(exc, bridge.upstream)
        logger.error(f"Error in chat completions handler: {detail}")
        return internal_error_response(detail)
    except Exception as exc:
        logger.error(f"Error in chat completions handler: {exc}")
        return internal_error_response(str(exc))

