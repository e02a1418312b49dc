"""Summary-plus-recent truncation strategy."""

from __future__ import annotations

import logging
from typing import Any

from chat_context.config.options import PreservationStrategy
from chat_context.context.strategies.base import SelectionRequest, TruncationStrategy
from chat_context.context.strategies.recent import RecentMessagesStrategy
from chat_context.messages import Message, Role
from chat_context.tokens import TokenEstimator

logger = logging.getLogger(__name__)

SUMMARY_MESSAGE_ID = "context-summary"
SUMMARY_PREFIX = "Previous conversation summary: "
SUMMARY_RESERVE_RATIO = 0.3
SUMMARY_TOPIC_COUNT = 3
# Excerpt lengths tried in order until the summary fits
EXCERPT_LENGTHS: tuple[int, ...] = (100, 50, 20)


def _excerpt(content: str, length: int) -> str:
    content = " ".join(content.split())
    return content if len(content) <= length else content[:length] + "..."


def summary_text(excluded: list[Message], excerpt_length: int | None) -> str:
    """Describe excluded messages in one line.

    Args:
        excluded: Messages left out of the context, in sequence order.
        excerpt_length: Maximum characters per user excerpt, or ``None`` to
            omit excerpts entirely.

    Returns:
        Summary text without the ``Previous conversation summary`` prefix.
    """
    topics = [m.content for m in excluded if m.role == Role.USER][:SUMMARY_TOPIC_COUNT]
    if excerpt_length is None or not topics:
        return f"{len(excluded)} earlier messages omitted"

    remaining = len(excluded) - len(topics)
    text = "User discussed: " + "; ".join(_excerpt(t, excerpt_length) for t in topics)
    if remaining > 0:
        text += f" (and {remaining} more messages)"
    return text


class SummarizedContextStrategy(TruncationStrategy):
    """Keep recent turns and condense older ones into a summary message.

    30% of the budget is reserved for the summary; the rest is filled by
    :class:`RecentMessagesStrategy`. The summary is a system-role message
    placed before every kept message. It is shortened until it fits and
    dropped if even the shortest form does not.

    Args:
        estimator: Token estimator used for message costs.
    """

    def __init__(self, estimator: TokenEstimator | None = None) -> None:
        super().__init__(estimator)
        self._recent = RecentMessagesStrategy(self._estimator)

    @property
    def name(self) -> str:
        return PreservationStrategy.SUMMARIZED_CONTEXT.value

    def _select(
        self,
        messages: list[Message],
        budget: int,
        request: SelectionRequest,
    ) -> tuple[list[Message], dict[str, Any]]:
        reserve = int(budget * SUMMARY_RESERVE_RATIO)
        selected, _ = self._recent._select(messages, budget - reserve, request)

        kept_ids = {m.id for m in selected}
        excluded = [m for m in messages if m.id not in kept_ids]
        if not excluded:
            return selected, {"summary_created": False, "summarized_count": 0}

        allowance = budget - sum(self._cost(m) for m in selected)
        summary = self._summary_message(messages, excluded, allowance)
        if summary is None:
            logger.debug("Summary of %d message(s) does not fit in %d tokens", len(excluded), allowance)
            return selected, {"summary_created": False, "summarized_count": 0}

        return [summary, *selected], {
            "summary_created": True,
            "summarized_count": len(excluded),
        }

    def _summary_message(
        self,
        messages: list[Message],
        excluded: list[Message],
        allowance: int,
    ) -> Message | None:
        first_sequence = messages[0].sequence_number
        for length in (*EXCERPT_LENGTHS, None):
            summary = Message(
                id=SUMMARY_MESSAGE_ID,
                role=Role.SYSTEM.value,
                content=SUMMARY_PREFIX + summary_text(excluded, length),
                sequence_number=first_sequence - 1,
            )
            if self._cost(summary) <= allowance:
                return summary
        return None
