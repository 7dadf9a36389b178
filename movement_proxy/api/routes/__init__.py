"""API routes for the proxy."""

from .chat import chat_completions
from .models import list_models

__all__ = [
    "chat_completions",
    "list_models",
]
