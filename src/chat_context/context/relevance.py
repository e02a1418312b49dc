"""Search-based relevance retrieval.

When the current message refers back to something said earlier ("what was
my favorite color?"), the retriever extracts search terms from it, asks the
external search collaborator for candidate messages, and re-scores every
candidate locally for topical relevance.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from chat_context.clock import Clock, SystemClock, age_in_hours
from chat_context.errors import SearchError
from chat_context.messages import Message, Role
from chat_context.protocols import SearchClient

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.7
DEFAULT_SEARCH_LIMIT = 10
FALLBACK_TERM_COUNT = 3

STOP_WORDS = frozenset(
    {
        "what", "when", "where", "how", "why", "who", "which", "this", "that",
        "they", "them", "with", "from", "about", "there", "their", "these",
        "those", "have", "been", "were", "your", "does", "again", "just",
        "some", "something", "would", "could", "should", "into", "then",
        "than", "tell", "more", "said", "the", "and", "was", "is", "are",
        "a", "an", "of", "to", "it", "me", "my", "you", "we", "i",
    }
)

_WORD = r"([a-z0-9][a-z0-9_-]*)"

# Ordered by priority; each yields at most one term group.
REFERENCE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\bwhat\s+(?:was|were|is|are)\s+my\s+{_WORD}(?:\s+{_WORD})?"),
    re.compile(
        rf"\bremember\s+(?:when|about|that)\s+"
        rf"(?:(?:we|you|i)\s+)?(?:(?:talked|spoke)\s+about\s+|discussed\s+|mentioned\s+|said\s+)?{_WORD}"
    ),
    re.compile(rf"\bwe\s+(?:discussed|mentioned|talked\s+about)\s+{_WORD}(?:\s+{_WORD})?"),
    re.compile(rf"\byou\s+said\s+(?:something\s+)?(?:about|regarding)\s+{_WORD}"),
    re.compile(rf"\bearlier\s+(?:you\s+)?(?:mentioned|said)\s+{_WORD}"),
    re.compile(rf"\b(?:tell\s+me\s+more\s+about|more\s+about|expand\s+on)\s+{_WORD}(?:\s+{_WORD})?"),
)
QUOTED_TERMS = re.compile(r"\"([^\"]+)\"|(?<!\w)'([^']+)'(?!\w)")
WORDS = re.compile(r"[a-z][a-z0-9_-]*")

# Relevance weights
TERM_MATCH_WEIGHT = 0.5
EXACT_PHRASE_BONUS = 0.3
ROLE_BONUS: dict[str, float] = {Role.USER.value: 0.2, Role.ASSISTANT.value: 0.1}
LONG_CONTENT_CHARS = 200
LONG_CONTENT_BONUS = 0.1
RECENCY_TIERS: tuple[tuple[float, float], ...] = ((24, 0.1), (24 * 7, 0.05))
BOTH_QUESTIONS_BONUS = 0.1
MAX_RELEVANCE = 1.0


@dataclass(frozen=True)
class ScoredMessage:
    """A retrieved message with its relevance score."""

    message: Message
    relevance_score: float


@dataclass
class RelevanceResult:
    """Outcome of a relevance retrieval.

    Attributes:
        messages: Relevant messages, most relevant first.
        search_terms: Term groups extracted from the query message.
        search_performed: Whether at least one search call succeeded.
    """

    messages: list[ScoredMessage] = field(default_factory=list)
    search_terms: list[list[str]] = field(default_factory=list)
    search_performed: bool = False

    @property
    def relevance_scores(self) -> dict[Any, float]:
        """Relevance score per message id."""
        return {item.message.id: item.relevance_score for item in self.messages}

    @property
    def relevant_messages(self) -> list[Message]:
        """Relevant messages without scores, most relevant first."""
        return [item.message for item in self.messages]

    @property
    def total_found(self) -> int:
        """Number of relevant messages."""
        return len(self.messages)

    def statistics(self) -> dict[str, Any]:
        """Summary statistics for debugging and tuning."""
        scores = [item.relevance_score for item in self.messages]
        flat_terms = [term for group in self.search_terms for term in group]
        return {
            "search_performed": self.search_performed,
            "search_terms_count": len(flat_terms),
            "relevant_messages_found": self.total_found,
            "avg_relevance_score": sum(scores) / len(scores) if scores else 0.0,
            "max_relevance_score": max(scores) if scores else 0.0,
            "min_relevance_score": min(scores) if scores else 0.0,
            "search_terms": flat_terms,
        }


def _clean_group(tokens: Sequence[str | None]) -> list[str]:
    group: list[str] = []
    for token in tokens:
        if token and token not in STOP_WORDS and token not in group:
            group.append(token)
    return group


def extract_search_terms(text: str) -> list[list[str]]:
    """Extract term groups from a message that may reference earlier turns.

    Patterns are tried in priority order; each match yields one group of
    tokens that are searched together. Salient words are used only when no
    pattern matched.

    Args:
        text: Message content.

    Returns:
        Term groups, possibly empty.
    """
    content = text.lower()
    groups: list[list[str]] = []

    def add(group: list[str]) -> None:
        if group and group not in groups:
            groups.append(group)

    for pattern in REFERENCE_PATTERNS:
        match = pattern.search(content)
        if match:
            add(_clean_group(match.groups()))

    for match in QUOTED_TERMS.finditer(content):
        quoted = match.group(1) or match.group(2) or ""
        add(_clean_group(WORDS.findall(quoted)))

    if not groups:
        salient = [w for w in WORDS.findall(content) if len(w) > 3 and w not in STOP_WORDS]
        add(_clean_group(salient)[:FALLBACK_TERM_COUNT])

    return groups


class RelevanceRetriever:
    """Find historical messages relevant to the current one.

    Args:
        search_client: External search collaborator. Without one, no search
            is ever performed.
        clock: Time source for recency bonuses.
    """

    def __init__(
        self,
        search_client: SearchClient | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._search = search_client
        self._clock = clock or SystemClock()

    def extract_search_terms(self, text: str) -> list[list[str]]:
        """See :func:`extract_search_terms`."""
        return extract_search_terms(text)

    def find_relevant_context(
        self,
        conversation_id: Any,
        query_message: Message,
        *,
        threshold: float = DEFAULT_THRESHOLD,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> RelevanceResult:
        """Retrieve messages relevant to ``query_message``.

        Search failures never propagate: a failed term group is logged and
        skipped, and if every search fails the result reports
        ``search_performed=False``.

        Args:
            conversation_id: Conversation to search in.
            query_message: The current message.
            threshold: Minimum relevance for a candidate to be kept.
            search_limit: Maximum candidates per search call.

        Returns:
            RelevanceResult sorted by descending relevance.
        """
        term_groups = self.extract_search_terms(query_message.content)
        if not term_groups or self._search is None:
            return RelevanceResult(search_terms=term_groups)

        best: dict[Any, ScoredMessage] = {}
        performed = False

        for group in term_groups:
            try:
                candidates = self._run_search(conversation_id, group, search_limit)
            except SearchError as e:
                logger.warning(
                    "Search failed for terms %s in conversation %s: %s",
                    group,
                    conversation_id,
                    e,
                )
                continue
            performed = True

            for candidate in candidates:
                if candidate.id == query_message.id:
                    continue
                score = self.relevance(candidate, query_message, group)
                if score < threshold:
                    continue
                current = best.get(candidate.id)
                if current is None or current.relevance_score < score:
                    best[candidate.id] = ScoredMessage(candidate, score)

        ranked = sorted(
            best.values(),
            key=lambda item: (-item.relevance_score, item.message.sequence_number),
        )

        logger.info(
            "Relevance retrieval for conversation %s: %d term group(s), %d relevant message(s)",
            conversation_id,
            len(term_groups),
            len(ranked),
        )

        return RelevanceResult(
            messages=ranked,
            search_terms=term_groups,
            search_performed=performed,
        )

    def relevance(self, candidate: Message, query_message: Message, terms: Sequence[str]) -> float:
        """Topical relevance of ``candidate`` to ``query_message``.

        Args:
            candidate: Historical message.
            query_message: Current message.
            terms: The term group the candidate was found with.

        Returns:
            Score in ``[0, 1.0]``.
        """
        content = candidate.content.lower()
        query = query_message.content.lower()
        score = 0.0

        if terms:
            matched = sum(1 for term in terms if term.lower() in content)
            score += TERM_MATCH_WEIGHT * matched / len(terms)
            if " ".join(terms).lower() in content:
                score += EXACT_PHRASE_BONUS

        role = candidate.role.value if isinstance(candidate.role, Role) else candidate.role
        score += ROLE_BONUS.get(role, 0.0)

        if len(candidate.content) > LONG_CONTENT_CHARS:
            score += LONG_CONTENT_BONUS

        age = age_in_hours(self._clock, candidate.created_at)
        if age is not None:
            for max_hours, bonus in RECENCY_TIERS:
                if age < max_hours:
                    score += bonus
                    break

        if (
            query_message.role == Role.USER
            and candidate.role == Role.USER
            and "?" in query
            and "?" in content
        ):
            score += BOTH_QUESTIONS_BONUS

        return min(round(score, 6), MAX_RELEVANCE)

    def _run_search(self, conversation_id: Any, terms: list[str], limit: int) -> list[Message]:
        query = " ".join(terms)
        try:
            return list(self._search.search(conversation_id, query, limit))
        except Exception as e:
            raise SearchError(
                "Search collaborator failed",
                cause=e,
                conversation_id=conversation_id,
                query=query,
            ) from e
