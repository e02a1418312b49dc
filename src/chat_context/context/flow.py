"""Conversational flow analysis.

Flow markers describe where a message sits in the conversation relative to
its immediate neighbours: part of a question/answer pair, a follow-up, a
restart after a long gap, or an explicit change of topic. Every check is
local, so a whole conversation is analysed in one linear pass.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from chat_context.clock import hours_between
from chat_context.context.markers import Marker, phrase_pattern
from chat_context.messages import Message, Role, sort_by_sequence

RESTART_GAP_HOURS = 24

FOLLOW_UP_OPENERS = re.compile(
    r"^(?:also|additionally|furthermore|moreover|and|but|however|what about)\b"
)
GREETING_OPENERS = re.compile(
    r"^(?:hello|hi|hey|good morning|good afternoon|good evening|greetings)\b"
)
TOPIC_PIVOTS = phrase_pattern(
    [
        "by the way", "speaking of", "on another note", "changing topics",
        "change of topic", "different question", "new topic", "something else",
    ]
)

FLOW_SCORE_WEIGHTS: dict[Marker, float] = {
    Marker.QUESTION_IN_PAIR: 0.2,
    Marker.ANSWER_IN_PAIR: 0.15,
    Marker.FOLLOW_UP_QUESTION: 0.1,
}


class FlowAnalyzer:
    """Compute flow markers over an ordered conversation."""

    def analyze(self, messages: Sequence[Message]) -> dict[Any, frozenset[Marker]]:
        """Flow markers for every message.

        Messages are ordered by ``sequence_number`` first, regardless of the
        order they were passed in.

        Args:
            messages: Conversation messages.

        Returns:
            Mapping of message id to its flow markers (possibly empty).
        """
        ordered = sort_by_sequence(list(messages))
        flow: dict[Any, frozenset[Marker]] = {}
        seen_user = False

        for i, message in enumerate(ordered):
            previous = ordered[i - 1] if i > 0 else None
            following = ordered[i + 1] if i + 1 < len(ordered) else None
            content = message.content.strip().lower()
            markers: set[Marker] = set()

            if message.role == Role.USER and following is not None and following.role == Role.ASSISTANT:
                markers.add(Marker.QUESTION_IN_PAIR)
            elif message.role == Role.ASSISTANT and previous is not None and previous.role == Role.USER:
                markers.add(Marker.ANSWER_IN_PAIR)

            if message.role == Role.USER:
                if seen_user and FOLLOW_UP_OPENERS.match(content):
                    markers.add(Marker.FOLLOW_UP_QUESTION)
                seen_user = True

            if previous is None or self._is_restart(message, previous, content):
                markers.add(Marker.CONVERSATION_STARTER)

            if TOPIC_PIVOTS.search(content):
                markers.add(Marker.TOPIC_CHANGE)

            flow[message.id] = frozenset(markers)

        return flow

    def flow_scores(self, messages: Sequence[Message]) -> dict[Any, float]:
        """Numeric flow contribution per message id."""
        return {
            message_id: flow_score(markers)
            for message_id, markers in self.analyze(messages).items()
        }

    def _is_restart(self, message: Message, previous: Message, content: str) -> bool:
        if message.created_at is not None and previous.created_at is not None:
            if hours_between(message.created_at, previous.created_at) > RESTART_GAP_HOURS:
                return True
        return GREETING_OPENERS.match(content) is not None


def flow_score(markers: frozenset[Marker] | set[Marker]) -> float:
    """Sum of flow weights for ``markers``."""
    return sum(FLOW_SCORE_WEIGHTS.get(marker, 0.0) for marker in markers)
