"""Token estimation.

Token counts are approximations (about four characters per token). Messages
that carry a pre-computed ``token_count`` use it as-is.

Usage:
    >>> from chat_context.tokens import TokenEstimator
    >>> TokenEstimator().estimate("Hello, world!")
    4
"""

from chat_context.tokens.estimator import CHARS_PER_TOKEN, TokenEstimator, estimate_tokens

__all__ = ["CHARS_PER_TOKEN", "TokenEstimator", "estimate_tokens"]
