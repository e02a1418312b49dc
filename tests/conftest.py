"""Shared test fixtures and configuration for chat-context tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from chat_context.clock import FixedClock
from chat_context.messages import Message, Role

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

MessageFactory = Callable[..., Message]


def build_message(
    seq: int,
    role: str = Role.USER.value,
    content: str | None = None,
    *,
    tokens: int | None = 10,
    hours_ago: float | None = None,
    message_id: Any = None,
) -> Message:
    """Build a message with a predictable id and (by default) a fixed token cost."""
    return Message(
        id=message_id if message_id is not None else f"m{seq}",
        role=role,
        content=content if content is not None else f"message {seq}",
        sequence_number=seq,
        created_at=NOW - timedelta(hours=hours_ago) if hours_ago is not None else None,
        token_count=tokens,
    )


class InMemoryStore:
    """Message store backed by a dict of conversation id to messages."""

    def __init__(self, conversations: dict[Any, list[Message]] | None = None) -> None:
        self.conversations = conversations or {}
        self.calls: list[tuple[Any, int, bool]] = []

    def get_messages(self, conversation_id: Any, limit: int, include_system: bool) -> list[Message]:
        self.calls.append((conversation_id, limit, include_system))
        messages = sorted(
            self.conversations.get(conversation_id, []),
            key=lambda m: m.sequence_number,
        )
        if not include_system:
            messages = [m for m in messages if m.role != Role.SYSTEM]
        return messages[-limit:]


class FakeSearchClient:
    """Returns stored messages containing any word of the query."""

    def __init__(self, messages: list[Message]) -> None:
        self.messages = messages
        self.queries: list[str] = []

    def search(self, conversation_id: Any, query: str, limit: int) -> list[Message]:
        self.queries.append(query)
        words = query.lower().split()
        hits = [m for m in self.messages if any(w in m.content.lower() for w in words)]
        return hits[:limit]


class FailingSearchClient:
    """Search collaborator that always times out."""

    def __init__(self) -> None:
        self.calls = 0

    def search(self, conversation_id: Any, query: str, limit: int) -> list[Message]:
        self.calls += 1
        raise TimeoutError("search backend timed out")


class DictCache:
    """Cache collaborator that never expires entries."""

    def __init__(self) -> None:
        self.entries: dict[str, Any] = {}
        self.produced = 0

    def get(self, key: str) -> Any:
        return self.entries.get(key)

    def remember(self, key: str, ttl: int, producer: Callable[[], Any]) -> Any:
        if key not in self.entries:
            self.produced += 1
            self.entries[key] = producer()
        return self.entries[key]

    def forget(self, key: str) -> None:
        self.entries.pop(key, None)


@pytest.fixture
def clock() -> FixedClock:
    """Provide a clock frozen at ``NOW``."""
    return FixedClock(NOW)


@pytest.fixture
def make_message() -> MessageFactory:
    """Factory fixture for messages.

    Usage:
        def test_something(make_message):
            message = make_message(3, "assistant", "Hello", tokens=5)
    """
    return build_message


@pytest.fixture
def conversation() -> list[Message]:
    """Provide a system prompt followed by three user/assistant exchanges.

    Every message costs 10 tokens except the system prompt (5).
    """
    return [
        build_message(0, Role.SYSTEM.value, "You are a helpful assistant.", tokens=5),
        build_message(1, Role.USER.value, "How do I read a file?"),
        build_message(2, Role.ASSISTANT.value, "Use open() with a context manager."),
        build_message(3, Role.USER.value, "And how do I write one?"),
        build_message(4, Role.ASSISTANT.value, "Open it in write mode."),
        build_message(5, Role.USER.value, "Thanks, what about appending?"),
        build_message(6, Role.ASSISTANT.value, "Use mode 'a'."),
    ]


@pytest.fixture
def favorite_color_history() -> list[Message]:
    """Provide a preference statement followed by ten filler exchanges."""
    messages = [
        build_message(1, Role.USER.value, "My favorite color is blue", hours_ago=48),
        build_message(2, Role.ASSISTANT.value, "Got it, blue is nice", hours_ago=48),
    ]
    for seq in range(3, 23):
        role = Role.USER.value if seq % 2 else Role.ASSISTANT.value
        messages.append(build_message(seq, role, f"filler turn {seq}", hours_ago=2))
    return messages


@pytest.fixture
def favorite_color_query() -> Message:
    """Provide the question that refers back to the preference statement."""
    return build_message(23, Role.USER.value, "What was my favorite color?", tokens=None)


@pytest.fixture
def dict_cache() -> DictCache:
    """Provide an empty in-memory cache."""
    return DictCache()


@pytest.fixture
def store_factory() -> Callable[..., InMemoryStore]:
    """Factory fixture for in-memory message stores.

    Usage:
        store = store_factory({"conv-1": messages})
    """
    return InMemoryStore


@pytest.fixture
def search_factory() -> Callable[[list[Message]], FakeSearchClient]:
    """Factory fixture for substring-matching search clients."""
    return FakeSearchClient


@pytest.fixture
def failing_search() -> FailingSearchClient:
    """Provide a search client that always raises."""
    return FailingSearchClient()


# Marker for integration tests
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (may require external services)",
    )
