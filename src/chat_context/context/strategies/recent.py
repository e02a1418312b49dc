"""Recent messages truncation strategy."""

from __future__ import annotations

from typing import Any

from chat_context.config.options import PreservationStrategy
from chat_context.context.strategies.base import SelectionRequest, TruncationStrategy
from chat_context.messages import Message, Role


class RecentMessagesStrategy(TruncationStrategy):
    """Keep system messages, then the most recent turns that fit.

    Non-system messages are walked newest first and admission stops at the
    first one that does not fit, so the kept history is always a contiguous
    tail of the conversation.
    """

    @property
    def name(self) -> str:
        return PreservationStrategy.RECENT_MESSAGES.value

    def _select(
        self,
        messages: list[Message],
        budget: int,
        request: SelectionRequest,
    ) -> tuple[list[Message], dict[str, Any]]:
        system, used = self._admit_system(messages, budget)
        newest_first = [m for m in reversed(messages) if m.role != Role.SYSTEM]
        recent, _ = self._fill(newest_first, budget, used, stop_on_miss=True)
        return system + recent, {}
