"""Collaborator interfaces consumed by the context core.

Storage, search and caching live outside this package. Any object with the
matching methods can be injected.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from chat_context.messages import Message


@runtime_checkable
class MessageStore(Protocol):
    """Read access to persisted conversation messages."""

    def get_messages(
        self, conversation_id: Any, limit: int, include_system: bool
    ) -> list[Message]:
        """Return up to ``limit`` messages ordered by ``sequence_number``."""
        ...


@runtime_checkable
class SearchClient(Protocol):
    """Full-text (or similar) search over a conversation's messages.

    Only candidates are needed; relevance is recomputed locally.
    """

    def search(self, conversation_id: Any, query: str, limit: int) -> list[Message]: ...


@runtime_checkable
class ContextCache(Protocol):
    """Optional memoization backend."""

    def get(self, key: str) -> Any: ...

    def remember(self, key: str, ttl: int, producer: Callable[[], Any]) -> Any: ...

    def forget(self, key: str) -> None: ...
