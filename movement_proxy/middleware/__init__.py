"""Middleware modules for the proxy."""

from .cors import CORS_HEADERS, CORSHeadersMiddleware

__all__ = [
    "CORS_HEADERS",
    "CORSHeadersMiddleware",
]
