"""Error handling."""

from chat_context.errors.exceptions import (
    ConfigurationError,
    ContextError,
    ContextOverflowError,
    SearchError,
)

__all__ = [
    "ConfigurationError",
    "ContextError",
    "ContextOverflowError",
    "SearchError",
]
