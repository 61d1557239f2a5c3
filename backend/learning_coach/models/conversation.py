"""
Conversation Models - Consultation input, chat turns, recommendations and saved records.

Attributes are snake_case in Python; the stored and wire form uses the
camelCase names the browser client already understands.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing with camelCase aliases and accepting both forms."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class UserInput(CamelModel):
    """Consultation parameters submitted through the input form."""
    learning_goal: str
    interests: List[str]
    current_concerns: str = ""
    learning_level: Optional[str] = None  # beginner, intermediate, advanced
    time_available: Optional[str] = None
    email: Optional[str] = None


class Message(CamelModel):
    """One chat turn. ``type`` is accepted as a legacy name for ``role``."""
    id: str
    role: Literal["user", "ai"] = Field(validation_alias=AliasChoices("role", "type"))
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Recommendation(CamelModel):
    """Structured suggestion derived from an AI reply."""
    id: str
    title: str
    description: str
    category: Literal["resource", "activity", "strategy"]
    priority: Literal["high", "medium", "low"]


class ConversationRecord(CamelModel):
    """A saved consultation."""
    id: str
    title: str
    preview: str
    created_at: datetime
    updated_at: datetime
    messages: List[Message] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    user_input: UserInput

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def to_storage_dict(self) -> Dict[str, Any]:
        """Serialize to the stored camelCase shape with ISO-8601 instants."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_storage_dict(cls, data: Dict[str, Any]) -> "ConversationRecord":
        """Rebuild a record (datetimes included) from its stored shape."""
        return cls.model_validate(data)


class SortOrder(str, Enum):
    """Orderings offered by the history view."""
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"


class SessionView(str, Enum):
    """Panel currently shown for a session."""
    CHAT = "chat"
    RECOMMENDATIONS = "recommendations"
    HISTORY = "history"
    EXPORT = "export"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
