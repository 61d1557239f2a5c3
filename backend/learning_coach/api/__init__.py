"""API module."""

from .chat import router as chat_router
from .conversations import router as conversations_router
from .feedback import router as feedback_router

__all__ = ['chat_router', 'conversations_router', 'feedback_router']
