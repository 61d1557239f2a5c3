"""Core module - conversation history, recommendation extraction and session logic."""

from .conversation_store import ConversationStore, sort_conversations
from .recommendations import RecommendationExtractor
from .session_state import SessionState, SessionRegistry, SessionStats
from .coach import CoachService
from .feedback_store import FeedbackStore

__all__ = [
    'ConversationStore',
    'sort_conversations',
    'RecommendationExtractor',
    'SessionState',
    'SessionRegistry',
    'SessionStats',
    'CoachService',
    'FeedbackStore',
]
