"""
API Models - Request and response bodies of the HTTP layer.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional
from pydantic import BaseModel, EmailStr, Field

from .conversation import CamelModel, Message, Recommendation, SessionView, UserInput


class ChatTurnRequest(BaseModel):
    """Follow-up question typed into the chat box."""
    content: str = Field(..., min_length=1)


class SessionSnapshot(CamelModel):
    """Current state of a consultation session."""
    session_id: str
    user_input: Optional[UserInput] = None
    messages: List[Message] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    current_conversation_id: Optional[str] = None
    current_view: SessionView = SessionView.CHAT


class SaveResponse(CamelModel):
    """Outcome of saving a session into the conversation history."""
    conversation_id: str
    ok: bool
    failure: Optional[str] = None


class StorageStatus(CamelModel):
    """Outcome of a history mutation."""
    ok: bool
    failure: Optional[str] = None


class FeedbackCreate(BaseModel):
    """Feedback submitted from the feedback widget."""
    type: Literal["bug", "feature", "improvement", "general"] = "general"
    rating: int = Field(..., ge=1, le=5)
    message: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    category: str = ""


class FeedbackEntry(FeedbackCreate):
    """Stored feedback entry."""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class StatsResponse(CamelModel):
    """Usage counters."""
    total_conversations: int = 0
    total_messages: int = 0
    total_recommendations: int = 0
    last_active_date: Optional[datetime] = None
