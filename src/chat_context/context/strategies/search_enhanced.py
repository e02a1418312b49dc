"""Search-enhanced truncation strategy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from chat_context.config.options import PreservationStrategy
from chat_context.context.relevance import RelevanceResult, RelevanceRetriever
from chat_context.context.strategies.base import (
    SelectionRequest,
    TruncationResult,
    TruncationStrategy,
)
from chat_context.messages import Message, Role, sort_by_sequence
from chat_context.tokens import TokenEstimator

logger = logging.getLogger(__name__)


class SearchEnhancedStrategy(TruncationStrategy):
    """Keep system messages, then relevant messages, then recent ones.

    Relevant messages come from :class:`RelevanceRetriever` and may lie
    outside the loaded history; they join the candidates before selection.
    Relevant messages are admitted most relevant first, skipping any that do
    not fit. The remaining budget goes to the most recent non-system
    messages, stopping at the first that does not fit.

    Without a current message there is nothing to search for and the
    strategy behaves like ``recent_messages``.

    Note: This strategy overrides ``truncate()`` rather than implementing
    ``_select()`` alone, because retrieval can change the candidate set.

    Args:
        retriever: Relevance retriever.
        estimator: Token estimator used for message costs.
    """

    def __init__(
        self,
        retriever: RelevanceRetriever | None = None,
        estimator: TokenEstimator | None = None,
    ) -> None:
        super().__init__(estimator)
        self._retriever = retriever or RelevanceRetriever()

    @property
    def name(self) -> str:
        return PreservationStrategy.SEARCH_ENHANCED_TRUNCATION.value

    def truncate(
        self,
        messages: Sequence[Message],
        budget: int,
        request: SelectionRequest | None = None,
    ) -> TruncationResult:
        request = request or SelectionRequest()
        relevance = self._retrieve(request)

        candidates = {m.id: m for m in messages}
        for message in relevance.relevant_messages:
            if message.role != Role.SYSTEM:
                candidates.setdefault(message.id, message)
        ordered = sort_by_sequence(list(candidates.values()))

        selected, metadata = self._select_with(ordered, budget, relevance)
        return self._build_result(ordered, selected, metadata)

    def _select(
        self,
        messages: list[Message],
        budget: int,
        request: SelectionRequest,
    ) -> tuple[list[Message], dict[str, Any]]:
        return self._select_with(messages, budget, self._retrieve(request))

    def _retrieve(self, request: SelectionRequest) -> RelevanceResult:
        if request.current_message is None:
            return RelevanceResult()
        return self._retriever.find_relevant_context(
            request.conversation_id,
            request.current_message,
            threshold=request.options.relevance_threshold,
            search_limit=request.options.search_limit,
        )

    def _select_with(
        self,
        messages: list[Message],
        budget: int,
        relevance: RelevanceResult,
    ) -> tuple[list[Message], dict[str, Any]]:
        selected, used = self._admit_system(messages, budget)
        present = {m.id for m in messages}

        relevant = [
            m for m in relevance.relevant_messages
            if m.role != Role.SYSTEM and m.id in present
        ]
        admitted_relevant, used = self._fill(relevant, budget, used, stop_on_miss=False)
        selected.extend(admitted_relevant)

        taken = {m.id for m in selected}
        newest_first = [
            m for m in reversed(messages)
            if m.role != Role.SYSTEM and m.id not in taken
        ]
        recent, _ = self._fill(newest_first, budget, used, stop_on_miss=True)
        selected.extend(recent)

        logger.debug(
            "Search-enhanced selection kept %d relevant and %d recent message(s)",
            len(admitted_relevant),
            len(recent),
        )

        return selected, {
            "search_relevant_preserved": len(admitted_relevant),
            "search_performed": relevance.search_performed,
            "search_terms": [term for group in relevance.search_terms for term in group],
        }
