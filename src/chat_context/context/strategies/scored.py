"""Importance-score truncation strategy."""

from __future__ import annotations

from typing import Any

from chat_context.config.options import PreservationStrategy
from chat_context.context.scoring import ImportanceScorer
from chat_context.context.strategies.base import SelectionRequest, TruncationStrategy
from chat_context.messages import Message, Role
from chat_context.tokens import TokenEstimator


def _average(values: list[float]) -> float:
    return round(sum(values) / len(values), 6) if values else 0.0


class AdvancedScoredStrategy(TruncationStrategy):
    """Keep system messages, then the highest-scoring messages.

    Non-system messages are ranked by importance score (newer first among
    equal scores) and admitted until the first one that does not fit.

    Args:
        scorer: Importance scorer.
        estimator: Token estimator used for message costs.
    """

    def __init__(
        self,
        scorer: ImportanceScorer | None = None,
        estimator: TokenEstimator | None = None,
    ) -> None:
        super().__init__(estimator)
        self._scorer = scorer or ImportanceScorer()

    @property
    def name(self) -> str:
        return PreservationStrategy.ADVANCED_SCORED.value

    def _select(
        self,
        messages: list[Message],
        budget: int,
        request: SelectionRequest,
    ) -> tuple[list[Message], dict[str, Any]]:
        scores = self._scorer.score_all(messages)
        selected, used = self._admit_system(messages, budget)

        ranked = sorted(
            (m for m in messages if m.role != Role.SYSTEM),
            key=lambda m: (-scores[m.id], -m.sequence_number),
        )
        admitted, _ = self._fill(ranked, budget, used, stop_on_miss=True)
        selected.extend(admitted)

        return selected, {
            "avg_importance_score": _average(list(scores.values())),
            "preserved_avg_score": _average([scores[m.id] for m in selected]),
        }
