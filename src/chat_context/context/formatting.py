"""Helpers around a computed context: injection text, gating, validation
and cache keys."""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

from chat_context.config.options import ContextOptions
from chat_context.context.strategies.base import TruncationResult
from chat_context.errors import ContextError, ContextOverflowError
from chat_context.messages import Message, Role

INJECTION_HEADER = "Relevant conversation context:\n"
INJECTION_PREVIEW_CHARS = 200
INJECTION_MIN_CHARS = 50

BACKWARD_REFERENCES = re.compile(
    r"what.*was|remember|you.*said|we.*discussed|earlier|before|previous"
    r"|my.*favorite|tell.*me.*about"
)


def _role_label(role: str) -> str:
    value = role.value if isinstance(role, Role) else str(role)
    return value[:1].upper() + value[1:]


def format_for_injection(result: TruncationResult) -> str:
    """Render a context as plain text for prompt injection.

    System messages are skipped; each other message becomes one
    ``- Role: content`` line with content cut at 200 characters.

    Example:
        Relevant conversation context:
        - User: What is my favorite color?
        - Assistant: You said it was blue.

    Args:
        result: Computed context.

    Returns:
        Injection text ending in a blank line, or ``""`` for an empty result.
    """
    if not result.messages:
        return ""

    lines = [INJECTION_HEADER]
    for message in result.messages:
        if message.role == Role.SYSTEM:
            continue
        content = message.content[:INJECTION_PREVIEW_CHARS]
        if len(message.content) > INJECTION_PREVIEW_CHARS:
            content += "..."
        lines.append(f"- {_role_label(message.role)}: {content}\n")

    return "".join(lines) + "\n"


def should_inject_context(message: Message, inject: bool | None = None) -> bool:
    """Decide whether context is worth injecting for ``message``.

    Args:
        message: The current message.
        inject: Explicit override; ``False`` disables injection.

    Returns:
        False for system messages or when disabled, True when the message
        refers back to earlier turns, otherwise True only for content longer
        than 50 characters.
    """
    if message.role == Role.SYSTEM or inject is False:
        return False

    if BACKWARD_REFERENCES.search(message.content.lower()):
        return True

    return len(message.content) > INJECTION_MIN_CHARS


def validate_context(result: TruncationResult, budget: int, strict: bool = False) -> bool:
    """Check that a context is non-empty and within ``budget``.

    Args:
        result: Computed context.
        budget: Token budget it was computed for.
        strict: Raise instead of returning False.

    Returns:
        True when the context is usable.

    Raises:
        ContextOverflowError: If ``strict`` and the context exceeds the budget.
        ContextError: If ``strict`` and the context is empty.
    """
    if result.total_tokens > budget:
        if strict:
            raise ContextOverflowError(
                "Context exceeds token budget",
                current_tokens=result.total_tokens,
                max_tokens=budget,
            )
        return False

    if not result.messages:
        if strict:
            raise ContextError("Context is empty", strategy=result.strategy)
        return False

    return True


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def generate_cache_key(conversation_id: Any, message: Message, options: ContextOptions) -> str:
    """Cache key for a context computation.

    Returns:
        ``context:{conversation_id}:{md5(content)}:{md5(options)}``.
    """
    options_json = json.dumps(options.model_dump(mode="json"), sort_keys=True)
    return f"context:{conversation_id}:{_md5(message.content)}:{_md5(options_json)}"
