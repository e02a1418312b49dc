"""Conversation-unit truncation strategy."""

from __future__ import annotations

from typing import Any

from chat_context.config.options import PreservationStrategy
from chat_context.context.strategies.base import SelectionRequest, TruncationStrategy
from chat_context.messages import Message, Role


def conversation_units(messages: list[Message]) -> list[list[Message]]:
    """Group non-system messages into conversation units.

    A unit is a user message together with every following non-user message
    up to the next user message. Messages before the first user message form
    a unit of their own.

    Args:
        messages: Messages in ascending sequence order.

    Returns:
        Units in conversation order.
    """
    units: list[list[Message]] = []
    current: list[Message] = []
    for message in messages:
        if message.role == Role.SYSTEM:
            continue
        if message.role == Role.USER and current:
            units.append(current)
            current = []
        current.append(message)
    if current:
        units.append(current)
    return units


class IntelligentTruncationStrategy(TruncationStrategy):
    """Keep system messages, then whole conversation units, newest first.

    A user question is never kept without the replies that followed it (and
    vice versa). Admission stops at the first unit that does not fit.
    """

    @property
    def name(self) -> str:
        return PreservationStrategy.INTELLIGENT_TRUNCATION.value

    def _select(
        self,
        messages: list[Message],
        budget: int,
        request: SelectionRequest,
    ) -> tuple[list[Message], dict[str, Any]]:
        selected, used = self._admit_system(messages, budget)
        units_kept = 0

        for unit in reversed(conversation_units(messages)):
            cost = sum(self._cost(m) for m in unit)
            if used + cost > budget:
                break
            selected.extend(unit)
            used += cost
            units_kept += 1

        return selected, {"conversation_pairs_preserved": units_kept}
