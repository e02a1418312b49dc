"""Holistic message importance scoring.

The importance score combines role, length, content signals, recency and
conversational flow. It drives the score-ranked strategies and the
last-resort removal in budget optimization. It is deliberately separate from
the marker priority score, which only reflects content categories.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

from chat_context.clock import Clock, SystemClock, age_in_hours
from chat_context.context.flow import FlowAnalyzer, flow_score
from chat_context.context.markers import Marker, phrase_pattern
from chat_context.messages import Message, Role

MAX_IMPORTANCE_SCORE = 2.0

ROLE_WEIGHTS: dict[str, float] = {
    Role.SYSTEM.value: 1.0,
    Role.USER.value: 0.7,
    Role.ASSISTANT.value: 0.5,
}
OTHER_ROLE_WEIGHT = 0.3

# (minimum exclusive length, bonus), checked in order
LENGTH_TIERS: tuple[tuple[int, float], ...] = ((500, 0.3), (200, 0.2), (100, 0.1))
# (maximum exclusive age in hours, bonus), checked in order
RECENCY_TIERS: tuple[tuple[float, float], ...] = ((1, 0.3), (24, 0.2), (168, 0.1))

QUESTION_BONUS = 0.2
KEYWORD_BONUS = 0.1
CODE_BONUS = 0.15

QUESTION_INDICATORS = re.compile(r"\b(?:what|how|why|when|where|who|which)\b")
KEYWORDS = phrase_pattern(
    [
        "error", "problem", "issue", "bug", "fix", "solution",
        "important", "critical", "urgent", "help", "please",
        "remember", "note", "warning", "caution", "attention",
    ]
)
CODE_INDICATORS = re.compile(
    r"```|`[^`\n]+`|\b(?:function|class|method|variable|array|object)\b"
)


def _role_weight(role: str) -> float:
    value = role.value if isinstance(role, Role) else role
    return ROLE_WEIGHTS.get(value, OTHER_ROLE_WEIGHT)


class ImportanceScorer:
    """Score messages by overall importance.

    Args:
        clock: Time source for recency tiers.
        flow_analyzer: Analyzer used by :meth:`score_all`.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        flow_analyzer: FlowAnalyzer | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._flow = flow_analyzer or FlowAnalyzer()

    def score(
        self,
        message: Message,
        flow_markers: Iterable[Marker] = (),
    ) -> float:
        """Importance of a single message.

        Args:
            message: Message to score.
            flow_markers: Pre-computed flow markers of the message.

        Returns:
            Score in ``[0, 2.0]``.
        """
        content = message.content.lower()
        score = _role_weight(message.role)

        for min_length, bonus in LENGTH_TIERS:
            if len(content) > min_length:
                score += bonus
                break

        if "?" in content or QUESTION_INDICATORS.search(content):
            score += QUESTION_BONUS

        # Applied once, however many keywords match
        if KEYWORDS.search(content):
            score += KEYWORD_BONUS

        if CODE_INDICATORS.search(content):
            score += CODE_BONUS

        age = age_in_hours(self._clock, message.created_at)
        if age is not None:
            for max_hours, bonus in RECENCY_TIERS:
                if age < max_hours:
                    score += bonus
                    break

        score += flow_score(frozenset(flow_markers))

        return min(round(score, 6), MAX_IMPORTANCE_SCORE)

    def score_all(self, messages: Sequence[Message]) -> dict[Any, float]:
        """Score every message, including its conversational flow.

        Args:
            messages: Conversation messages in any order.

        Returns:
            Mapping of message id to importance score.
        """
        flow = self._flow.analyze(messages)
        return {
            message.id: self.score(message, flow.get(message.id, frozenset()))
            for message in messages
        }
