"""Truncation strategies.

Each strategy selects an ordered subset of messages whose token cost fits a
budget. All of them share :class:`TruncationStrategy` and return a
:class:`TruncationResult`.
"""

from chat_context.context.strategies.base import (
    SelectionRequest,
    TruncationResult,
    TruncationStrategy,
)
from chat_context.context.strategies.important import ImportantMessagesStrategy
from chat_context.context.strategies.intelligent import (
    IntelligentTruncationStrategy,
    conversation_units,
)
from chat_context.context.strategies.recent import RecentMessagesStrategy
from chat_context.context.strategies.scored import AdvancedScoredStrategy
from chat_context.context.strategies.search_enhanced import SearchEnhancedStrategy
from chat_context.context.strategies.summarized import (
    SUMMARY_MESSAGE_ID,
    SummarizedContextStrategy,
)

__all__ = [
    "SUMMARY_MESSAGE_ID",
    "AdvancedScoredStrategy",
    "ImportantMessagesStrategy",
    "IntelligentTruncationStrategy",
    "RecentMessagesStrategy",
    "SearchEnhancedStrategy",
    "SelectionRequest",
    "SummarizedContextStrategy",
    "TruncationResult",
    "TruncationStrategy",
    "conversation_units",
]
