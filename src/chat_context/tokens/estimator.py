"""Approximate token estimation."""

from __future__ import annotations

import math
from collections.abc import Iterable

from chat_context.messages import Message

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate the token cost of ``text``.

    Uses ``ceil(len(text) / 4)``. This is a language-independent
    approximation, not the count any particular tokenizer would produce.

    Args:
        text: Text to measure.

    Returns:
        Approximate token count (0 for empty text).
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TokenEstimator:
    """Token cost of messages.

    Pre-computed ``token_count`` values on messages are trusted; everything
    else falls back to :func:`estimate_tokens`.
    """

    def estimate(self, text: str) -> int:
        """Estimate tokens for raw text.

        Args:
            text: Text to measure.

        Returns:
            Approximate token count.
        """
        return estimate_tokens(text)

    def count(self, message: Message) -> int:
        """Token cost of a single message.

        Args:
            message: Message to measure.

        Returns:
            ``message.token_count`` if known, otherwise the estimate.
        """
        if message.token_count is not None:
            return message.token_count
        return estimate_tokens(message.content)

    def estimate_sum(self, messages: Iterable[Message]) -> int:
        """Total token cost of ``messages``."""
        return sum(self.count(message) for message in messages)
