"""Content compression for selected context.

Three escalating levels reduce token cost without touching message role or
order:

- ``light``: collapse whitespace and repeated punctuation.
- ``balanced``: light, then drop filler words and hedges and shorten verbose
  connectives.
- ``aggressive``: balanced, then drop articles and intensifiers, contract
  negations and abbreviate common phrases.

System messages are never compressed beyond ``light``. Each level is applied
until the text stops changing, so re-optimizing at the same level is a no-op.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from chat_context.config.options import OptimizationLevel
from chat_context.context.scoring import ImportanceScorer
from chat_context.context.strategies.base import TruncationResult
from chat_context.context.strategies.summarized import SUMMARY_MESSAGE_ID
from chat_context.messages import Message, Role, sort_by_sequence
from chat_context.tokens import TokenEstimator

logger = logging.getLogger(__name__)

_Rule = tuple[re.Pattern[str], str | Callable[[re.Match[str]], str]]


def _keep_case(replacement: str) -> Callable[[re.Match[str]], str]:
    """Replacement that keeps a leading capital of the matched text."""

    def substitute(match: re.Match[str]) -> str:
        if match.group(0)[:1].isupper():
            return replacement[:1].upper() + replacement[1:]
        return replacement

    return substitute


def _words(*phrases: str) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(p) for p in sorted(phrases, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


WHITESPACE = re.compile(r"\s+")
PUNCTUATION_RULES: tuple[_Rule, ...] = (
    (re.compile(r"\.{3,}"), "..."),
    (re.compile(r"!{2,}"), "!"),
    (re.compile(r"\?{2,}"), "?"),
)

FILLERS = _words(
    "um", "uh", "er", "ah", "you know", "actually", "basically", "literally",
    "I think", "I believe", "I guess", "I suppose",
    "sort of", "kind of", "more or less", "pretty much",
)
CONNECTIVE_RULES: tuple[_Rule, ...] = (
    (_words("in order to"), _keep_case("to")),
    (_words("due to the fact that"), _keep_case("because")),
    (_words("at this point in time"), _keep_case("now")),
    (_words("for the purpose of"), _keep_case("to")),
    (_words("in the event that"), _keep_case("if")),
    (_words("in spite of the fact that"), _keep_case("although")),
    (_words("with regard to"), _keep_case("about")),
)

ARTICLES = re.compile(r"\b(?:a|an|the)\s+", re.IGNORECASE)
CONTRACTION_RULES: tuple[_Rule, ...] = tuple(
    (_words(phrase), _keep_case(contraction))
    for phrase, contraction in (
        ("do not", "don't"),
        ("does not", "doesn't"),
        ("did not", "didn't"),
        ("cannot", "can't"),
        ("can not", "can't"),
        ("will not", "won't"),
        ("should not", "shouldn't"),
        ("would not", "wouldn't"),
        ("could not", "couldn't"),
        ("is not", "isn't"),
        ("are not", "aren't"),
        ("was not", "wasn't"),
        ("were not", "weren't"),
        ("have not", "haven't"),
        ("has not", "hasn't"),
    )
)
INTENSIFIERS = re.compile(
    r"\b(?:very|really|quite|rather|extremely|incredibly|absolutely|totally|completely)\s+",
    re.IGNORECASE,
)
ABBREVIATION_RULES: tuple[_Rule, ...] = (
    (_words("for example"), "e.g."),
    (_words("for instance"), "e.g."),
    (_words("in other words"), "i.e."),
    (_words("and so on"), "etc."),
    (_words("and so forth"), "etc."),
    (_words("as soon as possible"), "ASAP"),
)

# Leftovers of removed words: " ," -> ",", ", ," -> ",", leading commas
SPACE_BEFORE_PUNCTUATION = re.compile(r"\s+([,.;:!?])")
DUPLICATE_COMMAS = re.compile(r",(?:\s*,)+")
LEADING_PUNCTUATION = re.compile(r"^[,;:]\s*")


def _apply(content: str, rules: tuple[_Rule, ...]) -> str:
    for pattern, replacement in rules:
        content = pattern.sub(replacement, content)
    return content


def _tidy(content: str) -> str:
    content = WHITESPACE.sub(" ", content).strip()
    content = SPACE_BEFORE_PUNCTUATION.sub(r"\1", content)
    content = DUPLICATE_COMMAS.sub(",", content)
    return LEADING_PUNCTUATION.sub("", content)


def _until_stable(transform: Callable[[str], str], content: str) -> str:
    # Every rule shortens the text it changes, so this terminates
    while True:
        updated = transform(content)
        if updated == content:
            return content
        content = updated


def _light(content: str) -> str:
    content = WHITESPACE.sub(" ", content).strip()
    return _apply(content, PUNCTUATION_RULES)


def _balanced(content: str) -> str:
    content = _light(content)
    content = FILLERS.sub("", content)
    content = _apply(content, CONNECTIVE_RULES)
    return _tidy(content)


def _aggressive(content: str) -> str:
    content = _balanced(content)
    content = ARTICLES.sub("", content)
    content = _apply(content, CONTRACTION_RULES)
    content = INTENSIFIERS.sub("", content)
    content = _apply(content, ABBREVIATION_RULES)
    return _tidy(content)


_TRANSFORMS: dict[OptimizationLevel, Callable[[str], str]] = {
    OptimizationLevel.LIGHT: _light,
    OptimizationLevel.BALANCED: _balanced,
    OptimizationLevel.AGGRESSIVE: _aggressive,
}


def light_optimization(content: str) -> str:
    """Collapse whitespace runs and repeated punctuation."""
    return _until_stable(_light, content)


def balanced_optimization(content: str) -> str:
    """Light optimization plus filler removal and connective simplification."""
    return _until_stable(_balanced, content)


def aggressive_optimization(content: str) -> str:
    """Balanced optimization plus article, intensifier and phrase reduction.

    Example:
        >>> aggressive_optimization("I think we should very carefully do this in order to succeed")
        'we should carefully do this to succeed'
    """
    return _until_stable(_aggressive, content)


class ContentOptimizer:
    """Compress selected context at a chosen level.

    Args:
        estimator: Token estimator used to recompute totals.
        scorer: Importance scorer for last-resort message removal.
    """

    def __init__(
        self,
        estimator: TokenEstimator | None = None,
        scorer: ImportanceScorer | None = None,
    ) -> None:
        self._estimator = estimator or TokenEstimator()
        self._scorer = scorer or ImportanceScorer()

    def optimize_text(self, content: str, level: OptimizationLevel | str) -> str:
        """Compress raw text at ``level``."""
        return _until_stable(_TRANSFORMS[OptimizationLevel(level)], content)

    def optimize_message(self, message: Message, level: OptimizationLevel | str) -> Message:
        """Compress one message; system messages are capped at ``light``.

        Returns:
            A new message (``token_count`` cleared) or ``message`` itself
            when nothing changed.
        """
        level = OptimizationLevel(level)
        if message.role == Role.SYSTEM:
            level = OptimizationLevel.LIGHT

        content = self.optimize_text(message.content, level)
        if content == message.content:
            return message
        return replace(message, content=content, token_count=None)

    def optimize_context(
        self, result: TruncationResult, level: OptimizationLevel | str
    ) -> TruncationResult:
        """Compress every message of ``result``.

        Args:
            result: Selected context.
            level: Compression level.

        Returns:
            New result with recomputed ``total_tokens`` and ``tokens_saved``,
            ``optimization_ratio`` and ``optimization_level`` in metadata.
        """
        level = OptimizationLevel(level)
        if not result.messages:
            return result.evolve(
                metadata={
                    "optimization_applied": True,
                    "optimization_level": level.value,
                    "tokens_saved": 0,
                    "optimization_ratio": 0.0,
                }
            )

        messages = [self.optimize_message(message, level) for message in result.messages]
        total = self._estimator.estimate_sum(messages)
        original = result.total_tokens
        saved = original - total

        logger.debug(
            "Optimized %d message(s) at level %s: %d -> %d tokens",
            len(messages),
            level.value,
            original,
            total,
        )

        return result.evolve(
            messages=messages,
            total_tokens=total,
            metadata={
                "optimization_applied": True,
                "optimization_level": level.value,
                "tokens_saved": saved,
                "optimization_ratio": saved / original if original > 0 else 0.0,
            },
        )

    def optimize_for_token_budget(
        self, result: TruncationResult, target_tokens: int
    ) -> TruncationResult:
        """Bring ``result`` within ``target_tokens``.

        Tries each level from mildest to strongest. If aggressive compression
        is still over budget, the least important messages are dropped one
        at a time until the budget is met.

        Args:
            result: Selected context.
            target_tokens: Token budget to meet.

        Returns:
            Result whose ``total_tokens`` is at most ``target_tokens``.
        """
        if result.total_tokens <= target_tokens:
            return result

        optimized = result
        for level in OptimizationLevel:
            optimized = self.optimize_context(result, level)
            if optimized.total_tokens <= target_tokens:
                return optimized

        scores = self._scorer.score_all(optimized.messages)
        # Lowest score first; older first among equal scores
        removal_order = sorted(
            optimized.messages,
            key=lambda m: (scores[m.id], m.sequence_number),
        )
        kept = list(optimized.messages)
        total = optimized.total_tokens
        removed = 0
        removed_originals = 0
        for message in removal_order:
            if total <= target_tokens:
                break
            kept.remove(message)
            total -= self._estimator.count(message)
            removed += 1
            # The summary message is synthetic and never in preserved_count
            if message.id != SUMMARY_MESSAGE_ID:
                removed_originals += 1

        logger.debug(
            "Budget optimization removed %d message(s) to reach %d tokens",
            removed,
            total,
        )

        return optimized.evolve(
            messages=sort_by_sequence(kept),
            total_tokens=total,
            truncated=True,
            preserved_count=max(0, optimized.preserved_count - removed_originals),
            metadata={"budget_optimization_applied": True, "messages_removed": removed},
        )


def optimization_stats(original: TruncationResult, optimized: TruncationResult) -> dict[str, Any]:
    """Compare a result before and after optimization."""
    before = original.total_tokens
    after = optimized.total_tokens
    saved = before - after
    return {
        "original_tokens": before,
        "optimized_tokens": after,
        "tokens_saved": saved,
        "compression_ratio": after / before if before > 0 else 1.0,
        "space_saved_percentage": saved / before * 100 if before > 0 else 0.0,
        "messages_count": len(optimized.messages),
        "optimization_level": optimized.metadata.get("optimization_level", "none"),
    }
