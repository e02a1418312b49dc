"""Conversation message model.

Messages are owned by the external message store. The context core only
reads them and, when compressing, derives new instances with
``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Message author role.

    Attributes:
        SYSTEM: Instructions for the model.
        USER: Human-authored turn.
        ASSISTANT: Model-authored turn.
    """

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single conversation message.

    Attributes:
        id: Opaque identifier assigned by the message store.
        role: Author role. Values outside ``Role`` are treated as "other".
        content: Message text.
        sequence_number: Monotonic position defining canonical order.
        created_at: When the message was created, if known.
        token_count: Pre-computed token cost; estimated when ``None``.
    """

    id: Any
    role: str
    content: str
    sequence_number: int
    created_at: datetime | None = None
    token_count: int | None = None

    @property
    def is_system(self) -> bool:
        """Whether this is a system-role message."""
        return self.role == Role.SYSTEM

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary.

        Returns:
            Dictionary with all message fields; ``created_at`` as ISO 8601.
        """
        return {
            "id": self.id,
            "role": str(self.role.value if isinstance(self.role, Role) else self.role),
            "content": self.content,
            "sequence_number": self.sequence_number,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "token_count": self.token_count,
        }


def sort_by_sequence(messages: list[Message] | tuple[Message, ...]) -> list[Message]:
    """Return messages in canonical (ascending ``sequence_number``) order."""
    return sorted(messages, key=lambda m: m.sequence_number)
