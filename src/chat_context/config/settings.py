"""Process-wide defaults loaded from the environment."""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_context.config.options import (
    ContextOptions,
    OptimizationLevel,
    PreservationStrategy,
    resolve_options,
)


class ContextSettings(BaseSettings):
    """Default context options for an application.

    Values are read from environment variables prefixed with
    ``CHAT_CONTEXT_`` (and from a ``.env`` file when present), then handed
    out as per-call ``ContextOptions``.

    Example:
        >>> # CHAT_CONTEXT_CONTEXT_WINDOW=8192
        >>> settings = ContextSettings()
        >>> options = settings.to_options(preservation_strategy="recent_messages")
    """

    model_config = SettingsConfigDict(
        env_prefix="CHAT_CONTEXT_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    context_window: int = Field(
        default=4096,
        ge=1,
        description="Default model context window in tokens",
    )
    preservation_strategy: PreservationStrategy = Field(
        default=PreservationStrategy.INTELLIGENT_TRUNCATION,
        description="Default truncation strategy",
    )
    context_ratio: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Default fraction of the context window usable for history",
    )
    message_limit: int = Field(
        default=50,
        ge=1,
        description="Default number of history messages to load",
    )
    optimization_level: OptimizationLevel | None = Field(
        default=None,
        description="Default compression level",
    )
    relevance_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Default minimum relevance score",
    )
    search_limit: int = Field(
        default=10,
        ge=1,
        description="Default candidates per search call",
    )
    cache_ttl: int = Field(
        default=300,
        ge=0,
        description="Default cache lifetime in seconds",
    )

    def to_options(self, **overrides: Any) -> ContextOptions:
        """Build per-call options from these defaults.

        Args:
            **overrides: Option values that replace the defaults.

        Returns:
            Validated ``ContextOptions``.
        """
        return resolve_options(self.model_dump(), **overrides)
