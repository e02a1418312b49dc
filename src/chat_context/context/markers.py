"""Preservation markers.

A marker is a categorical tag describing a structural or content signal in a
message. Content markers come from a declarative rule table evaluated
against lower-cased message text; flow markers come from
:class:`~chat_context.context.flow.FlowAnalyzer`. Both feed the marker
priority score used for preservation filtering.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from chat_context.clock import Clock, SystemClock, age_in_hours
from chat_context.messages import Message, Role

MAX_PRIORITY_SCORE = 2.0
UNKNOWN_MARKER_WEIGHT = 0.1
DETAILED_CONTENT_CHARS = 500
RECENT_HOURS = 24


class Marker(str, Enum):
    """Message marker tags."""

    SYSTEM_MESSAGE = "system_message"
    IMPORTANT_CONTENT = "important_content"
    QUESTION = "question"
    CODE_CONTENT = "code_content"
    DETAILED_CONTENT = "detailed_content"
    RECENT = "recent"
    CONTEXT_REFERENCE = "context_reference"
    ERROR_OR_PROBLEM = "error_or_problem"
    SOLUTION = "solution"
    DEFINITION = "definition"
    USER_PREFERENCE = "user_preference"
    # Flow markers
    QUESTION_IN_PAIR = "question_in_pair"
    ANSWER_IN_PAIR = "answer_in_pair"
    FOLLOW_UP_QUESTION = "follow_up_question"
    CONVERSATION_STARTER = "conversation_starter"
    TOPIC_CHANGE = "topic_change"


def phrase_pattern(phrases: Iterable[str]) -> re.Pattern[str]:
    """Compile phrases into one case-insensitive pattern anchored at a word start.

    Only the start is anchored, so "fail" also matches "failed" while "key"
    does not match "monkey".
    """
    alternatives = "|".join(re.escape(p) for p in sorted(phrases, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})", re.IGNORECASE)


IMPORTANT_KEYWORDS = phrase_pattern(
    [
        "remember", "important", "note", "warning", "error", "critical",
        "urgent", "attention", "caution", "alert", "notice", "key",
        "essential", "crucial", "vital", "significant", "major",
    ]
)
QUESTION_WORDS = re.compile(
    r"\b(?:what|how|why|when|where|who|which|can|could|would|should)\b"
)
CODE_PATTERN = re.compile(
    r"```|`[^`\n]+`|\b(?:function|class|method|variable|array|object|def|return|import|const|lambda)\b"
)
CONTEXT_REFERENCES = phrase_pattern(
    [
        "earlier", "before", "previous", "mentioned", "discussed",
        "talked about", "you said", "we covered", "as we", "like we",
    ]
)
PROBLEM_KEYWORDS = phrase_pattern(
    [
        "error", "bug", "issue", "problem", "fail", "broken", "wrong",
        "exception", "crash", "stuck", "help", "trouble", "difficulty",
    ]
)
SOLUTION_KEYWORDS = phrase_pattern(
    [
        "solution", "fix", "resolve", "answer", "try this", "here's how",
        "you can", "to solve", "the way to", "approach",
    ]
)
DEFINITION_PHRASES = phrase_pattern(
    [
        "is defined as", "means", "refers to", "is a ", "are a ",
        "definition", "in other words", "essentially",
    ]
)
PREFERENCE_PHRASES = phrase_pattern(
    [
        "my favorite", "my favourite", "i prefer", "i like", "i love", "i hate",
        "i usually", "i always", "i never", "my name is", "i am ",
    ]
)


@dataclass(frozen=True)
class MarkerRule:
    """A single content predicate.

    Attributes:
        marker: Marker emitted when the predicate holds.
        predicate: Called with the message and its lower-cased content.
    """

    marker: Marker
    predicate: Callable[[Message, str], bool]


def _matches(pattern: re.Pattern[str]) -> Callable[[Message, str], bool]:
    return lambda _message, content: pattern.search(content) is not None


CONTENT_RULES: tuple[MarkerRule, ...] = (
    MarkerRule(Marker.SYSTEM_MESSAGE, lambda m, _c: m.role == Role.SYSTEM),
    MarkerRule(Marker.IMPORTANT_CONTENT, _matches(IMPORTANT_KEYWORDS)),
    MarkerRule(
        Marker.QUESTION,
        lambda _m, c: "?" in c or QUESTION_WORDS.search(c) is not None,
    ),
    MarkerRule(Marker.CODE_CONTENT, _matches(CODE_PATTERN)),
    MarkerRule(Marker.DETAILED_CONTENT, lambda m, _c: len(m.content) > DETAILED_CONTENT_CHARS),
    MarkerRule(Marker.CONTEXT_REFERENCE, _matches(CONTEXT_REFERENCES)),
    MarkerRule(Marker.ERROR_OR_PROBLEM, _matches(PROBLEM_KEYWORDS)),
    MarkerRule(Marker.SOLUTION, _matches(SOLUTION_KEYWORDS)),
    MarkerRule(Marker.DEFINITION, _matches(DEFINITION_PHRASES)),
    MarkerRule(Marker.USER_PREFERENCE, _matches(PREFERENCE_PHRASES)),
)

MARKER_WEIGHTS: dict[Marker, float] = {
    Marker.SYSTEM_MESSAGE: 1.0,
    Marker.IMPORTANT_CONTENT: 0.9,
    Marker.ERROR_OR_PROBLEM: 0.8,
    Marker.SOLUTION: 0.8,
    Marker.USER_PREFERENCE: 0.7,
    Marker.DEFINITION: 0.7,
    Marker.QUESTION_IN_PAIR: 0.6,
    Marker.ANSWER_IN_PAIR: 0.6,
    Marker.CODE_CONTENT: 0.6,
    Marker.CONTEXT_REFERENCE: 0.5,
    Marker.DETAILED_CONTENT: 0.4,
    Marker.QUESTION: 0.4,
    Marker.FOLLOW_UP_QUESTION: 0.3,
    Marker.RECENT: 0.3,
    Marker.CONVERSATION_STARTER: 0.2,
    Marker.TOPIC_CHANGE: 0.2,
}

# Clause order is the order reasons are listed in.
REASON_CLAUSES: tuple[tuple[Marker, str], ...] = (
    (Marker.SYSTEM_MESSAGE, "System instruction"),
    (Marker.IMPORTANT_CONTENT, "Contains important keywords"),
    (Marker.USER_PREFERENCE, "User preference or personal info"),
    (Marker.ERROR_OR_PROBLEM, "Error or problem description"),
    (Marker.SOLUTION, "Solution or answer"),
    (Marker.DEFINITION, "Definition or explanation"),
    (Marker.QUESTION_IN_PAIR, "Question in Q&A pair"),
    (Marker.ANSWER_IN_PAIR, "Answer in Q&A pair"),
    (Marker.CODE_CONTENT, "Contains code"),
    (Marker.CONTEXT_REFERENCE, "References previous context"),
    (Marker.FOLLOW_UP_QUESTION, "Follow-up question"),
    (Marker.QUESTION, "Question"),
    (Marker.DETAILED_CONTENT, "Detailed content"),
    (Marker.TOPIC_CHANGE, "Topic change"),
    (Marker.CONVERSATION_STARTER, "Conversation starter"),
    (Marker.RECENT, "Recent message"),
)

DEFAULT_REASON = "General preservation"


@dataclass(frozen=True)
class MarkerSet:
    """Markers of one message with their derived priority.

    Attributes:
        markers: Marker tags present on the message.
        priority_score: Weighted marker sum, capped at 2.0.
        reason: Human-readable explanation of why the message matters.
    """

    markers: frozenset[Marker]
    priority_score: float
    reason: str

    def has(self, marker: Marker | str) -> bool:
        """Whether ``marker`` is present."""
        return Marker(marker) in self.markers

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return {
            "markers": sorted(m.value for m in self.markers),
            "priority_score": self.priority_score,
            "reason": self.reason,
        }


class MarkerEngine:
    """Tag messages with content markers and score marker sets.

    Args:
        clock: Time source for the ``recent`` marker.
        rules: Content rules to evaluate; defaults to ``CONTENT_RULES``.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        rules: tuple[MarkerRule, ...] = CONTENT_RULES,
    ) -> None:
        self._clock = clock or SystemClock()
        self._rules = rules

    def mark(self, message: Message) -> frozenset[Marker]:
        """Content and role markers of a single message."""
        content = message.content.lower()
        markers = {rule.marker for rule in self._rules if rule.predicate(message, content)}

        age = age_in_hours(self._clock, message.created_at)
        if age is not None and age < RECENT_HOURS:
            markers.add(Marker.RECENT)

        return frozenset(markers)

    def priority_score(self, markers: Iterable[Marker | str]) -> float:
        """Sum of marker weights, capped at ``MAX_PRIORITY_SCORE``.

        Tags not in the weight table count ``UNKNOWN_MARKER_WEIGHT`` each.
        """
        known: set[Marker] = set()
        unknown: set[str] = set()
        for marker in markers:
            try:
                known.add(Marker(marker))
            except ValueError:
                unknown.add(str(marker))

        score = sum(MARKER_WEIGHTS[m] for m in known) + UNKNOWN_MARKER_WEIGHT * len(unknown)
        return min(round(score, 6), MAX_PRIORITY_SCORE)

    def reason(self, markers: Iterable[Marker | str]) -> str:
        """Join the reason clauses of ``markers`` in priority order."""
        present = set()
        for marker in markers:
            try:
                present.add(Marker(marker))
            except ValueError:
                continue
        clauses = [text for marker, text in REASON_CLAUSES if marker in present]
        return ", ".join(clauses) or DEFAULT_REASON

    def marker_set(
        self, message: Message, extra: Iterable[Marker] = ()
    ) -> MarkerSet:
        """Build the full marker set for ``message``.

        Args:
            message: Message to mark.
            extra: Additional markers, typically flow markers.

        Returns:
            MarkerSet with priority and reason.
        """
        markers = self.mark(message) | frozenset(extra)
        return MarkerSet(
            markers=markers,
            priority_score=self.priority_score(markers),
            reason=self.reason(markers),
        )


def filter_by_markers(
    messages: Iterable[Message],
    marker_sets: Mapping[Any, MarkerSet],
    required: Iterable[Marker | str] = (),
    min_priority: float = 0.0,
) -> list[Message]:
    """Keep messages whose marker set meets the given requirements.

    Messages without an entry in ``marker_sets`` are dropped.

    Args:
        messages: Candidate messages.
        marker_sets: Marker sets keyed by message id.
        required: Markers every kept message must carry.
        min_priority: Minimum priority score.

    Returns:
        Matching messages in their original order.
    """
    required_markers = {Marker(m) for m in required}
    kept = []
    for message in messages:
        marker_set = marker_sets.get(message.id)
        if marker_set is None or marker_set.priority_score < min_priority:
            continue
        if not required_markers <= marker_set.markers:
            continue
        kept.append(message)
    return kept
