"""
Session State - The consultation currently being conducted.

A session holds its own working copy of the input, chat turns and
recommendation cards. It only reaches the saved history through explicit
save() calls on a ConversationStore.
"""

import json
import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..models import (
    ConversationRecord, Message, Recommendation, SessionSnapshot, SessionView, UserInput
)
from .conversation_store import ConversationStore
from .logging_config import LoggerAdapter
from .recommendations import RecommendationExtractor

logger = logging.getLogger(__name__)


def _message_id(prefix: str) -> str:
    return f"msg-{prefix}-{uuid.uuid4().hex[:12]}"


class SessionState:
    """In-memory state of one consultation."""

    def __init__(self, extractor: RecommendationExtractor, session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.extractor = extractor
        self.user_input: Optional[UserInput] = None
        self.messages: List[Message] = []
        self.recommendations: List[Recommendation] = []
        self.current_conversation_id: Optional[str] = None
        self.current_view: SessionView = SessionView.CHAT
        self.log = LoggerAdapter(logger, {"session_id": self.session_id})

    def submit(self, user_input: UserInput) -> None:
        """Start a new consultation from freshly submitted input."""
        self.user_input = user_input.model_copy(deep=True)
        self.messages = []
        self.recommendations = []
        self.current_conversation_id = None
        self.current_view = SessionView.CHAT

    def add_user_message(self, content: str) -> Message:
        message = Message(id=_message_id("user"), role="user", content=content)
        self.messages.append(message)
        return message

    def receive_ai_turn(self, content: Optional[str]) -> Optional[Message]:
        """
        Record a coach reply and refresh the recommendation cards from it.

        Args:
            content: Reply text; None when no reply was obtained

        Returns:
            Optional[Message]: The appended message, or None if nothing arrived
        """
        if content is None:
            return None

        message = Message(id=_message_id("ai"), role="ai", content=content)
        self.messages.append(message)
        self.recommendations = self.extractor.extract(content)
        self.log.debug(f"AI turn recorded with {len(self.recommendations)} recommendations")
        return message

    def add_error_turn(self, detail: str) -> Message:
        """Record a failed coach call as an apology turn; cards stay as they were."""
        message = Message(
            id=_message_id("error"),
            role="ai",
            content=f"죄송합니다. 오류가 발생했습니다: {detail}",
        )
        self.messages.append(message)
        return message

    async def save(self, store: ConversationStore) -> str:
        """
        Save the session into the history, or update the record saved earlier.

        Args:
            store: Conversation history repository

        Returns:
            str: Conversation id of the saved record

        Raises:
            ValueError: If no consultation input has been submitted yet
        """
        if self.user_input is None:
            raise ValueError("Nothing to save: no consultation has been started")

        if self.current_conversation_id is not None:
            await store.update(self.current_conversation_id, self.messages, self.recommendations)
            self.log.info(f"Session updated {self.current_conversation_id}")
            return self.current_conversation_id

        conversation_id = await store.save(self.user_input, self.messages, self.recommendations)
        # A record that never reached storage must be saved again next time, not updated
        if store.last_result.ok:
            self.current_conversation_id = conversation_id
            self.log.info(f"Session saved as {conversation_id}")
        return conversation_id

    def load_conversation(self, record: ConversationRecord) -> None:
        """Continue a saved conversation in this session."""
        self.user_input = record.user_input.model_copy(deep=True)
        self.messages = [msg.model_copy(deep=True) for msg in record.messages]
        self.recommendations = [rec.model_copy(deep=True) for rec in record.recommendations]
        self.current_conversation_id = record.id
        self.current_view = SessionView.CHAT

    def reset(self) -> None:
        self.user_input = None
        self.messages = []
        self.recommendations = []
        self.current_conversation_id = None
        self.current_view = SessionView.CHAT

    def history(self) -> List[Message]:
        """Prior turns in chronological order."""
        return list(self.messages)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            user_input=self.user_input,
            messages=self.messages,
            recommendations=self.recommendations,
            current_conversation_id=self.current_conversation_id,
            current_view=self.current_view,
        )


class SessionRegistry:
    """
    Live sessions keyed by session id.

    Holds at most ``max_sessions``; creating one more evicts the session
    used least recently. Evicted sessions lose unsaved turns only, saved
    history stays in the ConversationStore.
    """

    def __init__(self, extractor: RecommendationExtractor, max_sessions: int = 1000):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.extractor = extractor
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, SessionState]" = OrderedDict()

    def create(self) -> SessionState:
        session = SessionState(self.extractor)
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(
                "Evicted idle session",
                extra={"extra_fields": {"session_id": evicted_id, "max_sessions": self.max_sessions}}
            )
        return session

    def get(self, session_id: str) -> Optional[SessionState]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


class SessionStats:
    """
    Usage counters persisted under their own storage key.
    Write failures are logged and otherwise ignored.
    """

    def __init__(self, storage, storage_key: str = "ai-learning-coach-stats"):
        self.storage = storage
        self.storage_key = storage_key
        self.total_conversations = 0
        self.total_messages = 0
        self.total_recommendations = 0
        self.last_active_date: Optional[datetime] = None

    def as_dict(self) -> Dict:
        return {
            "totalConversations": self.total_conversations,
            "totalMessages": self.total_messages,
            "totalRecommendations": self.total_recommendations,
            "lastActiveDate": self.last_active_date.isoformat() if self.last_active_date else None,
        }

    async def load(self) -> None:
        try:
            blob = await self.storage.get(self.storage_key)
            if blob is None:
                return
            data = json.loads(blob)
            self.total_conversations = int(data.get("totalConversations", 0))
            self.total_messages = int(data.get("totalMessages", 0))
            self.total_recommendations = int(data.get("totalRecommendations", 0))
            last_active = data.get("lastActiveDate")
            self.last_active_date = datetime.fromisoformat(last_active) if last_active else None
        except Exception as e:
            logger.warning(f"Could not load usage stats, starting from zero: {e}")

    async def record(self, conversations: int = 0, messages: int = 0, recommendations: int = 0) -> None:
        """Increment counters and persist them."""
        self.total_conversations += conversations
        self.total_messages += messages
        self.total_recommendations += recommendations
        self.last_active_date = datetime.now(timezone.utc)

        result = await self.storage.set(self.storage_key, json.dumps(self.as_dict()))
        if not result.ok:
            logger.warning(f"Could not persist usage stats: {result.failure.value}")
