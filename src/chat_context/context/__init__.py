"""Context window management.

Selects, prioritizes and compresses conversation history so that it fits a
token budget for the next model call.

Preservation Strategies:
    - recent_messages: System messages plus the newest turns that fit
    - important_messages: Fill by role priority (system, user, assistant)
    - summarized_context: Recent turns plus a summary of older ones
    - intelligent_truncation: Whole user/assistant units, newest first
    - search_enhanced_truncation: Relevant earlier messages plus recent ones
    - advanced_scored: Highest importance scores first

Usage:
    >>> from chat_context.context import ContextOrchestrator
    >>> orchestrator = ContextOrchestrator(store=store, search_client=search)
    >>> result = orchestrator.compute_context(
    ...     "conv-1",
    ...     message,
    ...     {"preservation_strategy": "search_enhanced_truncation"},
    ... )
    >>> print(f"Kept {result.preserved_count} of {result.original_count}")
"""

from chat_context.context.flow import FlowAnalyzer
from chat_context.context.formatting import (
    format_for_injection,
    generate_cache_key,
    should_inject_context,
    validate_context,
)
from chat_context.context.markers import Marker, MarkerEngine, MarkerSet, filter_by_markers
from chat_context.context.optimizer import ContentOptimizer, optimization_stats
from chat_context.context.orchestrator import ContextOrchestrator
from chat_context.context.relevance import (
    RelevanceResult,
    RelevanceRetriever,
    ScoredMessage,
    extract_search_terms,
)
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

__all__ = [
    "AdvancedScoredStrategy",
    "ContentOptimizer",
    "ContextOrchestrator",
    "FlowAnalyzer",
    "ImportanceScorer",
    "ImportantMessagesStrategy",
    "IntelligentTruncationStrategy",
    "Marker",
    "MarkerEngine",
    "MarkerSet",
    "RecentMessagesStrategy",
    "RelevanceResult",
    "RelevanceRetriever",
    "ScoredMessage",
    "SearchEnhancedStrategy",
    "SelectionRequest",
    "SummarizedContextStrategy",
    "TruncationResult",
    "TruncationStrategy",
    "extract_search_terms",
    "filter_by_markers",
    "format_for_injection",
    "generate_cache_key",
    "optimization_stats",
    "should_inject_context",
    "validate_context",
]
