"""Rich Console renderer for computed contexts.

Classes:
    RichRenderer: Renders a ``TruncationResult`` as a Rich table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chat_context.messages import Role
from chat_context.tokens import TokenEstimator

if TYPE_CHECKING:
    from chat_context.context.strategies.base import TruncationResult

DEFAULT_PREVIEW_LENGTH = 60

_ROLE_STYLES: dict[str, str] = {
    Role.SYSTEM.value: "bold magenta",
    Role.USER.value: "bold blue",
    Role.ASSISTANT.value: "bold yellow",
}


class RichRenderer:
    """Rich Console renderer for ``TruncationResult`` objects.

    Each render method accepts an optional ``console`` parameter. When
    provided, a recording console with the same width is used. When
    omitted, a new ``Console(record=True)`` is created internally.

    Args:
        preview_length: Maximum characters of content shown per message.
        estimator: Token estimator for the per-message token column.

    Example::

        from chat_context.display import RichRenderer

        output = RichRenderer().render_result(result)
    """

    def __init__(
        self,
        preview_length: int = DEFAULT_PREVIEW_LENGTH,
        estimator: TokenEstimator | None = None,
    ) -> None:
        self._preview_length = preview_length
        self._estimator = estimator or TokenEstimator()

    def render_result(
        self,
        result: TruncationResult,
        *,
        console: Console | None = None,
    ) -> str:
        """Render a computed context as a table plus a summary line.

        Args:
            result: Computed context.
            console: Optional Rich Console instance.

        Returns:
            The rendered string captured from the console.
        """
        console = self._ensure_console(console)

        for renderable in self.render_result_renderables(result):
            console.print(renderable)

        return console.export_text()

    def render_result_renderables(self, result: TruncationResult) -> list[Table | Panel | Text]:
        """Build Rich renderable objects for a computed context.

        Used by ``TruncationResult.__rich_console__`` to yield Rich objects
        directly to the console.

        Args:
            result: Computed context.

        Returns:
            A list of Rich renderable objects.
        """
        summary = Text(self._summary(result), style="dim")

        if not result.messages:
            return [Panel("No messages selected", title="Context", expand=False), summary]

        table = Table(title=f"Context ({result.strategy})")
        table.add_column("Seq", justify="right")
        table.add_column("Role", style="bold cyan")
        table.add_column("Tokens", justify="right")
        table.add_column("Preview", no_wrap=False)

        for message in result.messages:
            role = message.role.value if isinstance(message.role, Role) else str(message.role)
            table.add_row(
                str(message.sequence_number),
                Text(role, style=_ROLE_STYLES.get(role, "")),
                f"{self._estimator.count(message):,}",
                self._preview(message.content),
            )

        table.add_section()
        table.add_row("", "Total", f"{result.total_tokens:,}", "", style="bold")

        return [table, summary]

    def _summary(self, result: TruncationResult) -> str:
        text = (
            f"Preserved {result.preserved_count}/{result.original_count} message(s), "
            f"{result.total_tokens:,} tokens"
        )
        if result.truncated:
            text += ", truncated"
        level = result.metadata.get("optimization_level")
        if level:
            text += f", optimized ({level}, saved {result.metadata.get('tokens_saved', 0):,})"
        return text

    def _preview(self, content: str) -> str:
        content = " ".join(content.split())
        if len(content) <= self._preview_length:
            return content
        return content[: self._preview_length] + "..."

    @staticmethod
    def _ensure_console(console: Console | None) -> Console:
        """Return a recording console, matching a user-provided one's width."""
        if console is not None:
            return Console(record=True, width=console.width)
        return Console(record=True)
