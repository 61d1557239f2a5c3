"""
API dependencies - Hand the objects created at startup to route handlers.
"""

from fastapi import HTTPException, Request, status

from ..core import CoachService, ConversationStore, FeedbackStore, SessionRegistry, SessionStats
from ..core.session_state import SessionState


def get_conversation_store(request: Request) -> ConversationStore:
    return request.app.state.conversation_store


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


def get_coach(request: Request) -> CoachService:
    return request.app.state.coach


def get_stats(request: Request) -> SessionStats:
    return request.app.state.stats


def get_feedback_store(request: Request) -> FeedbackStore:
    return request.app.state.feedback_store


def require_session(registry: SessionRegistry, session_id: str) -> SessionState:
    """Look up a live session or answer 404."""
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )
    return session
