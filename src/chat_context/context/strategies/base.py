"""Base class for truncation strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from chat_context.config.options import ContextOptions
from chat_context.messages import Message, Role, sort_by_sequence
from chat_context.tokens import TokenEstimator

if TYPE_CHECKING:
    from rich.console import Console, ConsoleOptions, RenderResult


@dataclass(frozen=True)
class SelectionRequest:
    """What a strategy may need beyond the history itself.

    Attributes:
        conversation_id: Conversation the history belongs to.
        current_message: The message the context is being built for.
        options: Options of the current computation.
    """

    conversation_id: Any = None
    current_message: Message | None = None
    options: ContextOptions = field(default_factory=ContextOptions)


@dataclass(frozen=True)
class TruncationResult:
    """Result of selecting context within a token budget.

    Attributes:
        messages: Selected messages, ascending ``sequence_number``.
        total_tokens: Token cost of ``messages``.
        truncated: Whether any original message was left out.
        strategy: Tag of the strategy that produced the result.
        original_count: Number of candidate messages.
        preserved_count: Number of candidate messages kept (synthetic
            messages such as summaries are not counted).
        metadata: Strategy- and optimization-specific details.
    """

    messages: list[Message]
    total_tokens: int
    truncated: bool
    strategy: str
    original_count: int
    preserved_count: int
    metadata: dict[str, Any] = field(default_factory=dict)

    def evolve(self, *, metadata: dict[str, Any] | None = None, **changes: Any) -> TruncationResult:
        """Copy with ``changes`` applied and ``metadata`` merged in."""
        merged = {**self.metadata, **(metadata or {})}
        return replace(self, metadata=merged, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return {
            "messages": [message.to_dict() for message in self.messages],
            "total_tokens": self.total_tokens,
            "truncated": self.truncated,
            "strategy": self.strategy,
            "original_count": self.original_count,
            "preserved_count": self.preserved_count,
            **self.metadata,
        }

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        """Render as a Rich table when passed to ``rich.print()`` or ``Console.print()``."""
        from chat_context.display.rich_renderer import RichRenderer

        yield from RichRenderer().render_result_renderables(self)


class TruncationStrategy(ABC):
    """Abstract base class for truncation strategies.

    This class uses the Template Method pattern. Subclasses implement
    ``_select()`` with strategy-specific logic, while the base class orders
    the input and builds the final ``TruncationResult``.

    Args:
        estimator: Token estimator used for message costs.
    """

    def __init__(self, estimator: TokenEstimator | None = None) -> None:
        self._estimator = estimator or TokenEstimator()

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the strategy name.

        Returns:
            Strategy identifier.
        """
        ...

    def truncate(
        self,
        messages: Sequence[Message],
        budget: int,
        request: SelectionRequest | None = None,
    ) -> TruncationResult:
        """Select messages that fit within ``budget``.

        Args:
            messages: Candidate messages in any order.
            budget: Token budget.
            request: Conversation, current message and options.

        Returns:
            TruncationResult with messages in ascending sequence order.
        """
        ordered = sort_by_sequence(list(messages))
        selected, metadata = self._select(ordered, budget, request or SelectionRequest())
        return self._build_result(ordered, selected, metadata)

    @abstractmethod
    def _select(
        self,
        messages: list[Message],
        budget: int,
        request: SelectionRequest,
    ) -> tuple[list[Message], dict[str, Any]]:
        """Strategy-specific selection logic.

        Args:
            messages: Candidates in ascending sequence order.
            budget: Token budget.
            request: Conversation, current message and options.

        Returns:
            Tuple of (selected_messages, metadata). Order does not matter.
        """
        ...

    def _build_result(
        self,
        candidates: list[Message],
        selected: Iterable[Message],
        metadata: dict[str, Any],
    ) -> TruncationResult:
        selected = sort_by_sequence(list(selected))
        candidate_ids = {message.id for message in candidates}
        preserved = sum(1 for message in selected if message.id in candidate_ids)
        return TruncationResult(
            messages=selected,
            total_tokens=self._estimator.estimate_sum(selected),
            truncated=preserved < len(candidates),
            strategy=self.name,
            original_count=len(candidates),
            preserved_count=preserved,
            metadata=metadata,
        )

    def _cost(self, message: Message) -> int:
        return self._estimator.count(message)

    def _fill(
        self,
        candidates: Iterable[Message],
        budget: int,
        used: int,
        *,
        stop_on_miss: bool,
    ) -> tuple[list[Message], int]:
        """Greedily admit candidates in the given order.

        Args:
            candidates: Messages in admission order.
            budget: Token budget.
            used: Tokens already spent.
            stop_on_miss: Stop at the first message that does not fit
                instead of skipping it.

        Returns:
            Tuple of (admitted_messages, tokens_used).
        """
        admitted: list[Message] = []
        for message in candidates:
            cost = self._cost(message)
            if used + cost <= budget:
                admitted.append(message)
                used += cost
            elif stop_on_miss:
                break
        return admitted, used

    def _admit_system(self, messages: Iterable[Message], budget: int) -> tuple[list[Message], int]:
        """Admit system messages oldest first, skipping any that do not fit."""
        system = [m for m in messages if m.role == Role.SYSTEM]
        return self._fill(system, budget, 0, stop_on_miss=False)
