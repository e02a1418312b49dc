"""Standalone helper for rendering computed contexts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from chat_context.display.rich_renderer import DEFAULT_PREVIEW_LENGTH, RichRenderer

if TYPE_CHECKING:
    from rich.console import Console

    from chat_context.context.strategies.base import TruncationResult


def render_result(
    result: TruncationResult,
    *,
    preview_length: int = DEFAULT_PREVIEW_LENGTH,
    console: Console | None = None,
) -> str:
    """Render a computed context with Rich.

    Args:
        result: Computed context.
        preview_length: Maximum characters of content shown per message.
        console: Optional Rich ``Console`` instance.

    Returns:
        The rendered output as a string.
    """
    return RichRenderer(preview_length=preview_length).render_result(result, console=console)
