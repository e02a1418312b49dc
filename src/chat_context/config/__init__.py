"""Configuration for context computation.

Main exports:
- ContextOptions: Validated per-call options
- ContextSettings: Environment-backed defaults
- PreservationStrategy, OptimizationLevel: Option enums
- provider_options, recommended_options: Presets
"""

from chat_context.config.options import (
    FULL_CONTEXT,
    ContextOptions,
    OptimizationLevel,
    PreservationStrategy,
    resolve_options,
)
from chat_context.config.presets import (
    available_strategies,
    provider_options,
    recommended_options,
)
from chat_context.config.settings import ContextSettings

__all__ = [
    "FULL_CONTEXT",
    "ContextOptions",
    "ContextSettings",
    "OptimizationLevel",
    "PreservationStrategy",
    "available_strategies",
    "provider_options",
    "recommended_options",
    "resolve_options",
]
