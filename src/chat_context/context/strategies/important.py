"""Role-priority truncation strategy."""

from __future__ import annotations

from typing import Any

from chat_context.config.options import PreservationStrategy
from chat_context.context.strategies.base import SelectionRequest, TruncationStrategy
from chat_context.messages import Message, Role

ROLE_PRIORITY: dict[str, int] = {
    Role.SYSTEM.value: 1,
    Role.USER.value: 2,
    Role.ASSISTANT.value: 3,
}
OTHER_ROLE_PRIORITY = 4


def role_priority(message: Message) -> int:
    """Rank of a message's role; lower ranks are admitted first."""
    role = message.role.value if isinstance(message.role, Role) else message.role
    return ROLE_PRIORITY.get(role, OTHER_ROLE_PRIORITY)


class ImportantMessagesStrategy(TruncationStrategy):
    """Admit messages by role priority: system, user, assistant, other.

    Within a role, older messages come first. A message that does not fit
    is skipped and filling continues with the next one.
    """

    @property
    def name(self) -> str:
        return PreservationStrategy.IMPORTANT_MESSAGES.value

    def _select(
        self,
        messages: list[Message],
        budget: int,
        request: SelectionRequest,
    ) -> tuple[list[Message], dict[str, Any]]:
        # sorted() is stable, so sequence order holds within each role
        ranked = sorted(messages, key=role_priority)
        selected, _ = self._fill(ranked, budget, 0, stop_on_miss=False)
        return selected, {}
