"""Display module for computed contexts.

Public API:
    RichRenderer: Renderer producing Rich Console output.
    render_result: Standalone function to render a ``TruncationResult``.
"""

from chat_context.display.functions import render_result
from chat_context.display.rich_renderer import RichRenderer

__all__ = ["RichRenderer", "render_result"]
