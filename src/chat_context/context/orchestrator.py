"""Context orchestration: load, select and compress conversation history."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from chat_context.clock import Clock, SystemClock
from chat_context.config.options import (
    FULL_CONTEXT,
    ContextOptions,
    OptimizationLevel,
    PreservationStrategy,
    resolve_options,
)
from chat_context.config.settings import ContextSettings
from chat_context.context.flow import FlowAnalyzer
from chat_context.context.formatting import format_for_injection, generate_cache_key
from chat_context.context.markers import MarkerEngine, MarkerSet
from chat_context.context.optimizer import ContentOptimizer
from chat_context.context.relevance import RelevanceResult, RelevanceRetriever
from chat_context.context.scoring import ImportanceScorer
from chat_context.context.strategies import (
    AdvancedScoredStrategy,
    ImportantMessagesStrategy,
    IntelligentTruncationStrategy,
    RecentMessagesStrategy,
    SearchEnhancedStrategy,
    SelectionRequest,
    SummarizedContextStrategy,
    TruncationResult,
    TruncationStrategy,
)
from chat_context.errors import ConfigurationError
from chat_context.messages import Message, Role, sort_by_sequence
from chat_context.protocols import ContextCache, MessageStore, SearchClient
from chat_context.tokens import TokenEstimator

logger = logging.getLogger(__name__)

OptionsInput = ContextOptions | Mapping[str, Any] | None


class ContextOrchestrator:
    """Compute the context to send with the next model call.

    The orchestrator wires the scoring, retrieval, truncation and
    optimization components together. Every collaborator is injected, so an
    instance holds no conversation state and may be shared freely.

    Args:
        store: Message store used by :meth:`compute_context`.
        search_client: Search collaborator for ``search_enhanced_truncation``.
        cache: Optional cache for computed contexts.
        clock: Time source for recency rules.
        settings: Process defaults used when options are omitted or partial.
        estimator: Token estimator.

    Example:
        >>> orchestrator = ContextOrchestrator(store=my_store)
        >>> result = orchestrator.compute_context("conv-1", message)
        >>> prompt_context = orchestrator.format_for_injection(result)
    """

    def __init__(
        self,
        store: MessageStore | None = None,
        search_client: SearchClient | None = None,
        cache: ContextCache | None = None,
        clock: Clock | None = None,
        settings: ContextSettings | None = None,
        estimator: TokenEstimator | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._settings = settings
        self._clock = clock or SystemClock()
        self._estimator = estimator or TokenEstimator()

        self._flow = FlowAnalyzer()
        self._markers = MarkerEngine(self._clock)
        self._scorer = ImportanceScorer(self._clock, self._flow)
        self._retriever = RelevanceRetriever(search_client, self._clock)
        self._optimizer = ContentOptimizer(self._estimator, self._scorer)
        self._strategies = self._build_strategies()

    def _build_strategies(self) -> dict[PreservationStrategy, TruncationStrategy]:
        strategies: dict[PreservationStrategy, TruncationStrategy] = {
            PreservationStrategy.RECENT_MESSAGES: RecentMessagesStrategy(self._estimator),
            PreservationStrategy.IMPORTANT_MESSAGES: ImportantMessagesStrategy(self._estimator),
            PreservationStrategy.SUMMARIZED_CONTEXT: SummarizedContextStrategy(self._estimator),
            PreservationStrategy.INTELLIGENT_TRUNCATION: IntelligentTruncationStrategy(
                self._estimator
            ),
            PreservationStrategy.SEARCH_ENHANCED_TRUNCATION: SearchEnhancedStrategy(
                self._retriever, self._estimator
            ),
            PreservationStrategy.ADVANCED_SCORED: AdvancedScoredStrategy(
                self._scorer, self._estimator
            ),
        }
        missing = [s.value for s in PreservationStrategy if s not in strategies]
        if missing:
            raise ConfigurationError(
                f"No implementation for strategies: {', '.join(missing)}",
                config_key="preservation_strategy",
                expected=[s.value for s in PreservationStrategy],
                actual=missing,
            )
        return strategies

    @property
    def retriever(self) -> RelevanceRetriever:
        """The relevance retriever used by search-enhanced truncation."""
        return self._retriever

    def resolve_options(self, options: OptionsInput = None) -> ContextOptions:
        """Merge ``options`` over the configured settings and validate them.

        Raises:
            ConfigurationError: If an option is unknown or out of range.
        """
        if isinstance(options, ContextOptions):
            return options
        overrides = dict(options or {})
        if self._settings is not None:
            return self._settings.to_options(**overrides)
        return resolve_options(overrides)

    def compute_context(
        self,
        conversation_id: Any,
        current_message: Message,
        options: OptionsInput = None,
    ) -> TruncationResult:
        """Compute the context for ``current_message``.

        Loads up to ``message_limit`` messages from the store, keeps all of
        them when they fit (``full_context``), otherwise runs the configured
        strategy, then applies ``optimization_level`` if one is set. When a
        cache is configured, results are memoized per conversation, message
        content and options.

        Args:
            conversation_id: Conversation to load.
            current_message: The message being answered.
            options: Per-call options.

        Returns:
            TruncationResult within ``options.budget``.

        Raises:
            ConfigurationError: If options are invalid or no store is set.
        """
        opts = self.resolve_options(options)
        if self._store is None:
            raise ConfigurationError(
                "compute_context requires a message store",
                config_key="store",
            )

        if self._cache is None:
            return self._compute(conversation_id, current_message, opts)

        key = generate_cache_key(conversation_id, current_message, opts)
        return self._cache.remember(
            key,
            opts.cache_ttl,
            lambda: self._compute(conversation_id, current_message, opts),
        )

    def _compute(
        self,
        conversation_id: Any,
        current_message: Message,
        options: ContextOptions,
    ) -> TruncationResult:
        messages = self._store.get_messages(
            conversation_id, options.message_limit, options.include_system
        )
        result = self.truncate(
            messages,
            options.budget,
            options.preservation_strategy,
            current_message=current_message,
            options=options,
            conversation_id=conversation_id,
        )

        if options.optimization_level is not None:
            result = self._optimizer.optimize_context(result, options.optimization_level)

        logger.info(
            "Context for conversation %s: %d/%d message(s), %d/%d tokens, strategy=%s",
            conversation_id,
            result.preserved_count,
            result.original_count,
            result.total_tokens,
            options.budget,
            result.strategy,
        )
        return result

    def truncate(
        self,
        messages: Sequence[Message],
        budget: int,
        strategy: PreservationStrategy | str | None = None,
        current_message: Message | None = None,
        options: OptionsInput = None,
        conversation_id: Any = None,
    ) -> TruncationResult:
        """Select messages within ``budget``.

        Args:
            messages: Candidate history in any order.
            budget: Token budget.
            strategy: Strategy to use when the history does not fit. Defaults
                to the resolved options' ``preservation_strategy``.
            current_message: Message being answered, used for search.
            options: Options for search thresholds and system handling.
            conversation_id: Conversation searched for relevant messages.

        Returns:
            TruncationResult; ``strategy`` is ``full_context`` when nothing
            had to be dropped.

        Raises:
            ConfigurationError: If ``strategy`` is unknown.
        """
        opts = self.resolve_options(options)
        selected_strategy = self._strategy(
            opts.preservation_strategy if strategy is None else strategy
        )

        if not opts.include_system:
            messages = [m for m in messages if m.role != Role.SYSTEM]
        ordered = sort_by_sequence(list(messages))

        total = self._estimator.estimate_sum(ordered)
        if total <= budget:
            logger.debug("History of %d message(s) fits in %d tokens", len(ordered), budget)
            return TruncationResult(
                messages=ordered,
                total_tokens=total,
                truncated=False,
                strategy=FULL_CONTEXT,
                original_count=len(ordered),
                preserved_count=len(ordered),
            )

        logger.debug(
            "History of %d tokens exceeds budget %d, applying %s",
            total,
            budget,
            selected_strategy.name,
        )
        request = SelectionRequest(
            conversation_id=conversation_id,
            current_message=current_message,
            options=opts,
        )
        return selected_strategy.truncate(ordered, budget, request)

    def _strategy(self, strategy: PreservationStrategy | str) -> TruncationStrategy:
        try:
            key = PreservationStrategy(strategy)
        except ValueError:
            raise ConfigurationError(
                f"Unknown preservation strategy: {strategy!r}",
                config_key="preservation_strategy",
                expected=[s.value for s in PreservationStrategy],
                actual=strategy,
            ) from None
        return self._strategies[key]

    def score_messages(self, messages: Sequence[Message]) -> dict[Any, MarkerSet]:
        """Content and flow markers with priority and reason per message id."""
        flow = self._flow.analyze(messages)
        return {
            message.id: self._markers.marker_set(message, flow.get(message.id, frozenset()))
            for message in messages
        }

    def importance_scores(self, messages: Sequence[Message]) -> dict[Any, float]:
        """Holistic importance score per message id."""
        return self._scorer.score_all(messages)

    def find_relevant_context(
        self,
        conversation_id: Any,
        current_message: Message,
        options: OptionsInput = None,
    ) -> RelevanceResult:
        """Messages relevant to ``current_message`` per the retriever."""
        opts = self.resolve_options(options)
        return self._retriever.find_relevant_context(
            conversation_id,
            current_message,
            threshold=opts.relevance_threshold,
            search_limit=opts.search_limit,
        )

    def optimize_context(
        self, result: TruncationResult, level: OptimizationLevel | str
    ) -> TruncationResult:
        """Compress ``result`` at ``level``."""
        return self._optimizer.optimize_context(result, level)

    def optimize_for_token_budget(
        self, result: TruncationResult, target_tokens: int
    ) -> TruncationResult:
        """Compress (and if needed, prune) ``result`` to ``target_tokens``."""
        return self._optimizer.optimize_for_token_budget(result, target_tokens)

    def format_for_injection(self, result: TruncationResult) -> str:
        """See :func:`chat_context.context.formatting.format_for_injection`."""
        return format_for_injection(result)
