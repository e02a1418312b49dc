"""Provider and conversation-type option presets."""

from __future__ import annotations

from typing import Any

from chat_context.config.options import ContextOptions, PreservationStrategy, resolve_options

_PROVIDER_OVERRIDES: dict[str, dict[str, Any]] = {
    "openai": {"context_ratio": 0.85},
    "gemini": {
        "context_ratio": 0.8,
        "preservation_strategy": PreservationStrategy.RECENT_MESSAGES,
    },
    "xai": {"context_ratio": 0.75},
}

_CONVERSATION_TYPE_OVERRIDES: dict[str, dict[str, Any]] = {
    "chat": {
        "preservation_strategy": PreservationStrategy.RECENT_MESSAGES,
        "context_ratio": 0.8,
    },
    "analysis": {
        "preservation_strategy": PreservationStrategy.IMPORTANT_MESSAGES,
        "context_ratio": 0.9,
    },
    "coding": {
        "preservation_strategy": PreservationStrategy.INTELLIGENT_TRUNCATION,
        "context_ratio": 0.85,
    },
    "creative": {
        "preservation_strategy": PreservationStrategy.SUMMARIZED_CONTEXT,
        "context_ratio": 0.75,
    },
}

_STRATEGY_DESCRIPTIONS: dict[PreservationStrategy, dict[str, str]] = {
    PreservationStrategy.RECENT_MESSAGES: {
        "name": "Recent Messages",
        "description": "Preserve the most recent messages in the conversation",
        "best_for": "Ongoing conversations where recent context is most important",
    },
    PreservationStrategy.IMPORTANT_MESSAGES: {
        "name": "Important Messages",
        "description": "Preserve messages by role priority (system > user > assistant)",
        "best_for": "Conversations with important system instructions",
    },
    PreservationStrategy.SUMMARIZED_CONTEXT: {
        "name": "Summarized Context",
        "description": "Summarize older messages while preserving recent ones",
        "best_for": "Long conversations where historical context matters",
    },
    PreservationStrategy.INTELLIGENT_TRUNCATION: {
        "name": "Intelligent Truncation",
        "description": "Keep system messages and the most recent complete exchanges",
        "best_for": "Most conversations",
    },
    PreservationStrategy.SEARCH_ENHANCED_TRUNCATION: {
        "name": "Search-Enhanced Truncation",
        "description": "Use conversation search to keep relevant historical messages",
        "best_for": "Conversations where users reference previous topics",
    },
    PreservationStrategy.ADVANCED_SCORED: {
        "name": "Advanced Scored",
        "description": "Rank messages by holistic importance score",
        "best_for": "Long, mixed conversations with uneven message value",
    },
}


def provider_options(
    provider: str,
    context_window: int | None = None,
    base: ContextOptions | None = None,
) -> ContextOptions:
    """Options tuned for a model provider.

    Unknown providers get ``base`` (or the defaults) unchanged apart from
    ``context_window``.

    Args:
        provider: Provider name, case-insensitive (e.g. "openai").
        context_window: The model's context window, if known.
        base: Options to start from.

    Returns:
        Validated options.
    """
    overrides = dict(_PROVIDER_OVERRIDES.get(provider.lower(), {}))
    if context_window is not None:
        overrides["context_window"] = context_window
    return resolve_options(base, **overrides)


def recommended_options(
    conversation_type: str,
    base: ContextOptions | None = None,
) -> ContextOptions:
    """Options recommended for a kind of conversation.

    Args:
        conversation_type: One of "chat", "analysis", "coding", "creative".
            Anything else returns ``base`` (or the defaults).
        base: Options to start from.

    Returns:
        Validated options.
    """
    return resolve_options(base, **_CONVERSATION_TYPE_OVERRIDES.get(conversation_type, {}))


def available_strategies() -> dict[str, dict[str, str]]:
    """Human-readable descriptions of every selectable strategy."""
    return {strategy.value: dict(info) for strategy, info in _STRATEGY_DESCRIPTIONS.items()}
