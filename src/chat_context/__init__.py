"""
Chat Context - conversation context window management for AI chat apps.

Quick Start:
    >>> from chat_context import ContextOrchestrator, Message
    >>> orchestrator = ContextOrchestrator(store=my_store)
    >>> result = orchestrator.compute_context("conv-1", message)
    >>> print(orchestrator.format_for_injection(result))

With Settings:
    >>> from chat_context import ContextOrchestrator, ContextSettings
    >>> settings = ContextSettings()  # Loads CHAT_CONTEXT_* env vars and .env
    >>> orchestrator = ContextOrchestrator(store=my_store, settings=settings)

Key Features:
    - Six truncation strategies plus automatic full-context detection
    - Content markers, conversational flow and importance scoring
    - Search-based retrieval of earlier relevant messages
    - Three-level content compression
"""

from chat_context.clock import Clock, FixedClock, SystemClock

# Configuration
from chat_context.config import (
    ContextOptions,
    ContextSettings,
    OptimizationLevel,
    PreservationStrategy,
    provider_options,
    recommended_options,
    resolve_options,
)

# Context management
from chat_context.context import (
    ContentOptimizer,
    ContextOrchestrator,
    FlowAnalyzer,
    ImportanceScorer,
    Marker,
    MarkerEngine,
    MarkerSet,
    RelevanceResult,
    RelevanceRetriever,
    TruncationResult,
    format_for_injection,
    should_inject_context,
    validate_context,
)

# Errors
from chat_context.errors import (
    ConfigurationError,
    ContextError,
    ContextOverflowError,
    SearchError,
)
from chat_context.messages import Message, Role
from chat_context.protocols import ContextCache, MessageStore, SearchClient
from chat_context.tokens import TokenEstimator

__version__ = "0.1.0"

__all__ = [
    # Core
    "ContextOrchestrator",
    "Message",
    "Role",
    "TruncationResult",
    # Configuration
    "ContextOptions",
    "ContextSettings",
    "OptimizationLevel",
    "PreservationStrategy",
    "provider_options",
    "recommended_options",
    "resolve_options",
    # Components
    "ContentOptimizer",
    "FlowAnalyzer",
    "ImportanceScorer",
    "Marker",
    "MarkerEngine",
    "MarkerSet",
    "RelevanceResult",
    "RelevanceRetriever",
    "TokenEstimator",
    # Helpers
    "format_for_injection",
    "should_inject_context",
    "validate_context",
    # Collaborators
    "Clock",
    "ContextCache",
    "FixedClock",
    "MessageStore",
    "SearchClient",
    "SystemClock",
    # Errors
    "ConfigurationError",
    "ContextError",
    "ContextOverflowError",
    "SearchError",
]
