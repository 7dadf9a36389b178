"""Main FastAPI application for the Movement Labs proxy."""

import logging
import socket
from contextlib import asynccontextmanager
from typing import Any, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import chat_completions, list_models
from .config_loader import load_config, resolve_log_level, resolve_server_address
from .core import UpstreamBridge, parse_upstream
from .logging import setup_logging
from .middleware import CORSHeadersMiddleware

logger = logging.getLogger("movement-proxy")

# The models listing answers regardless of method; OPTIONS is handled by the
# CORS middleware.
MODELS_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    """Unknown paths and wrong methods are answered in plain text."""
    if exc.status_code == 404:
        detail = "Not Found"
    elif exc.status_code == 405:
        detail = "Method Not Allowed"
    else:
        detail = str(exc.detail)
    return PlainTextResponse(detail, status_code=exc.status_code, headers=exc.headers)


def create_app(config: Optional[Mapping[str, Any]] = None) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        config: Parsed configuration. Loaded from the default config file
            when omitted.

    Returns:
        The configured FastAPI application instance.
    """
    if config is None:
        config = load_config()
    setup_logging(resolve_log_level(config))

    bridge = UpstreamBridge(parse_upstream(config))
    host, port = resolve_server_address(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Movement proxy starting up...")
        logger.info("Configured bind address %s:%s", host, port)
        if host == "0.0.0.0":
            hostname = socket.gethostname()
            logger.info("Reachable on local network at http://%s:%s", hostname, port)
        logger.info(
            "Serving model '%s' from upstream %s",
            bridge.upstream.model_id,
            bridge.upstream.url,
        )
        yield
        logger.info("Movement proxy shutting down")

    app = FastAPI(title="Movement Proxy", lifespan=lifespan, redirect_slashes=False)
    app.state.bridge = bridge
    app.state.server_address = (host, port)

    app.add_middleware(CORSHeadersMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.api_route("/v1/models", methods=MODELS_METHODS)(list_models)
    app.post("/v1/chat/completions")(chat_completions)

    logger.info("FastAPI application created")
    return app


app = create_app()


def run() -> None:
    """Serve the module-level app with uvicorn."""
    import uvicorn

    host, port = app.state.server_address
    uvicorn.run(app, host=host, port=port)


__all__ = ["app", "create_app", "run"]
