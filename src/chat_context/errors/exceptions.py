"""Custom exception hierarchy for context window management."""

from __future__ import annotations

from typing import Any, ClassVar


class ContextError(Exception):
    """Base exception for all context management errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch every context-related error at once.

    Attributes:
        message: Human-readable error message.
        cause: Original exception that caused this error.
        details: Additional error context as key-value pairs.

    Details can be accessed as attributes (e.g., error.config_key).
    """

    # Map attribute names to default values when not in details
    _defaults: ClassVar[dict[str, Any]] = {}

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        **details: Any,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            cause: Original exception that caused this error.
            **details: Additional error context.
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details

    def __getattr__(self, name: str) -> Any:
        """Access details as attributes."""
        if name in ("details", "message", "cause"):
            raise AttributeError(name)
        if name in self.details:
            return self.details[name]
        if name in self._defaults:
            return self._defaults[name]
        raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

    def __str__(self) -> str:
        """Return string representation."""
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


class ConfigurationError(ContextError):
    """Invalid context options or settings.

    Raised at the options boundary before any computation starts, e.g. for
    an unknown preservation strategy or an out-of-range context ratio.

    Attributes from details: config_key, expected, actual.
    """


class SearchError(ContextError):
    """The search collaborator failed.

    Raised around a failed search call. The relevance retriever logs and
    absorbs it, so it never escapes a truncation run.

    Attributes from details: conversation_id, query, retryable (default: True).
    """

    _defaults: ClassVar[dict[str, Any]] = {"retryable": True}


class ContextOverflowError(ContextError):
    """Selected context exceeds the token budget.

    Raised by strict context validation when a result does not fit the
    budget it was computed for.

    Attributes from details: current_tokens, max_tokens.
    """
