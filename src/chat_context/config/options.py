"""Per-call context options."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chat_context.errors import ConfigurationError


class PreservationStrategy(str, Enum):
    """Selectable truncation strategies.

    ``full_context`` is not listed: it is reported automatically when the
    whole history fits the budget.
    """

    RECENT_MESSAGES = "recent_messages"
    IMPORTANT_MESSAGES = "important_messages"
    SUMMARIZED_CONTEXT = "summarized_context"
    INTELLIGENT_TRUNCATION = "intelligent_truncation"
    SEARCH_ENHANCED_TRUNCATION = "search_enhanced_truncation"
    ADVANCED_SCORED = "advanced_scored"


class OptimizationLevel(str, Enum):
    """Content compression levels, mildest first."""

    LIGHT = "light"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


FULL_CONTEXT = "full_context"


class ContextOptions(BaseModel):
    """Options for a single context computation.

    Attributes:
        message_limit: Maximum number of history messages to load.
        include_system: Whether system messages take part in selection.
        preservation_strategy: Strategy used when the history does not fit.
        context_window: Model context window in tokens.
        context_ratio: Fraction of the context window usable for history.
        optimization_level: Compression applied to the selected context.
        relevance_threshold: Minimum relevance for search-retrieved messages.
        search_limit: Maximum candidates requested per search call.
        cache_ttl: Seconds a cached context stays valid.

    Example:
        >>> options = ContextOptions(preservation_strategy="recent_messages")
        >>> options.budget
        3276
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    message_limit: int = Field(
        default=50,
        ge=1,
        description="Maximum number of history messages to load",
    )
    include_system: bool = Field(
        default=True,
        description="Whether system messages take part in selection",
    )
    preservation_strategy: PreservationStrategy = Field(
        default=PreservationStrategy.INTELLIGENT_TRUNCATION,
        description="Strategy used when the history does not fit",
    )
    context_window: int = Field(
        default=4096,
        ge=1,
        description="Model context window in tokens",
    )
    context_ratio: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Fraction of the context window usable for history",
    )
    optimization_level: OptimizationLevel | None = Field(
        default=None,
        description="Compression applied to the selected context (None disables it)",
    )
    relevance_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum relevance for search-retrieved messages",
    )
    search_limit: int = Field(
        default=10,
        ge=1,
        description="Maximum candidates requested per search call",
    )
    cache_ttl: int = Field(
        default=300,
        ge=0,
        description="Seconds a cached context stays valid",
    )

    @property
    def budget(self) -> int:
        """Token budget available for history."""
        return int(self.context_window * self.context_ratio)


def resolve_options(
    options: ContextOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> ContextOptions:
    """Validate and normalize options.

    Args:
        options: An options model, a plain mapping, or ``None`` for defaults.
        **overrides: Field values that take precedence over ``options``.

    Returns:
        A validated ``ContextOptions``.

    Raises:
        ConfigurationError: If a value is unknown or out of range.
    """
    if isinstance(options, ContextOptions):
        data: dict[str, Any] = options.model_dump()
    else:
        data = dict(options or {})
    data.update(overrides)

    strategy = data.get("preservation_strategy")
    if strategy is not None and not isinstance(strategy, PreservationStrategy):
        valid = [s.value for s in PreservationStrategy]
        if strategy not in valid:
            raise ConfigurationError(
                f"Unknown preservation strategy: {strategy!r}",
                config_key="preservation_strategy",
                expected=valid,
                actual=strategy,
            )

    try:
        return ContextOptions.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid context option '{key}': {first.get('msg')}",
            cause=e,
            config_key=key,
            actual=first.get("input"),
        ) from e
