"""Models module."""

from .conversation import (
    UserInput, Message, Recommendation, ConversationRecord, SortOrder, SessionView
)
from .api import (
    ChatTurnRequest, SessionSnapshot, SaveResponse, StorageStatus,
    FeedbackCreate, FeedbackEntry, StatsResponse
)

__all__ = [
    'UserInput', 'Message', 'Recommendation', 'ConversationRecord', 'SortOrder', 'SessionView',
    'ChatTurnRequest', 'SessionSnapshot', 'SaveResponse', 'StorageStatus',
    'FeedbackCreate', 'FeedbackEntry', 'StatsResponse'
]
