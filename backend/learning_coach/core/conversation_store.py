"""
Conversation Store - Saved consultation history kept as one JSON blob.

The whole collection lives under a single storage key and is rewritten on
every mutation, newest record first. Storage problems never propagate to
the caller: they are logged, reported as a StorageResult and leave the
in-memory collection as it was before the failed write.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from ..models import ConversationRecord, Message, Recommendation, SortOrder, UserInput
from ..storage import KeyValueStorage, StorageFailure, StorageResult
from .exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "ai-learning-coach-conversations"
TITLE_LENGTH = 30
PREVIEW_LENGTH = 100
DEFAULT_PREVIEW = "새로운 상담 내용"  # "new consultation"


def _new_conversation_id() -> str:
    return f"conv-{uuid.uuid4().hex}"


def _truncate(text: str, length: int) -> str:
    return f"{text[:length]}..." if len(text) > length else text


def derive_title(user_input: UserInput) -> str:
    """First 30 characters of the learning goal."""
    return _truncate(user_input.learning_goal, TITLE_LENGTH)


def derive_preview(messages: Sequence[Message], fallback: str = DEFAULT_PREVIEW) -> str:
    """First 100 characters of the first AI message, or ``fallback``."""
    ai_message = next((msg for msg in messages if msg.role == "ai"), None)
    if ai_message is None:
        return fallback
    return _truncate(ai_message.content, PREVIEW_LENGTH)


def sort_conversations(
    conversations: Sequence[ConversationRecord],
    order: SortOrder = SortOrder.NEWEST
) -> List[ConversationRecord]:
    """
    Sort records for the history view. Ties keep their collection order.

    Args:
        conversations: Records in collection order
        order: newest / oldest by updated_at, or title (case-insensitive)

    Returns:
        New sorted list
    """
    if order == SortOrder.NEWEST:
        return sorted(conversations, key=lambda conv: conv.updated_at, reverse=True)
    if order == SortOrder.OLDEST:
        return sorted(conversations, key=lambda conv: conv.updated_at)
    if order == SortOrder.TITLE:
        return sorted(conversations, key=lambda conv: conv.title.casefold())
    raise ValueError(f"Unsupported sort order: {order}")


class ConversationStore:
    """
    Repository of saved conversations.
    Call load() once after construction and flush() at shutdown.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        storage_key: str = DEFAULT_STORAGE_KEY,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the store. Nothing is read until load() is called.

        Args:
            storage: Key-value storage backend
            storage_key: Key holding the serialized collection
            id_factory: Conversation id generator (uuid based by default)
            clock: Source of the current instant (UTC now by default)
        """
        self.storage = storage
        self.storage_key = storage_key
        self._id_factory = id_factory or _new_conversation_id
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._conversations: List[ConversationRecord] = []
        self._lock = asyncio.Lock()
        # False until storage is known to hold what memory holds; flush() is refused before that
        self._in_sync = False
        self.last_result: StorageResult = StorageResult.success()

    @property
    def conversations(self) -> List[ConversationRecord]:
        """Copy of the collection, newest first."""
        return [conv.model_copy(deep=True) for conv in self._conversations]

    def __len__(self) -> int:
        return len(self._conversations)

    def _find_index(self, conversation_id: str) -> Optional[int]:
        for index, conv in enumerate(self._conversations):
            if conv.id == conversation_id:
                return index
        return None

    def _serialize(self, conversations: List[ConversationRecord]) -> str:
        return json.dumps(
            [conv.to_storage_dict() for conv in conversations],
            ensure_ascii=True  # escapes lone surrogates, which are not valid UTF-8
        )

    async def _persist(self, conversations: List[ConversationRecord]) -> StorageResult:
        """Write ``conversations`` and adopt them only if the write succeeded."""
        result = await self.storage.set(self.storage_key, self._serialize(conversations))
        if result.ok:
            self._conversations = conversations
            self._in_sync = True
        else:
            logger.warning(
                f"Failed to persist conversation history: {result.failure.value} {result.detail}",
                extra={"extra_fields": {
                    "storage_key": self.storage_key,
                    "failure": result.failure.value,
                    "conversation_count": len(conversations),
                }}
            )
        self.last_result = result
        return result

    async def load(self) -> StorageResult:
        """
        Replace the in-memory collection with the stored one.

        A missing blob yields an empty collection. Unreadable or corrupt
        data also yields an empty collection; the returned result says why.

        Returns:
            StorageResult: success, UNAVAILABLE or CORRUPT
        """
        async with self._lock:
            try:
                blob = await self.storage.get(self.storage_key)
            except StorageUnavailableError as e:
                logger.warning(f"Conversation history unavailable, starting empty: {e}")
                self._conversations = []
                self._in_sync = False
                self.last_result = StorageResult.error(StorageFailure.UNAVAILABLE, str(e))
                return self.last_result

            if blob is None:
                self._conversations = []
                self._in_sync = True
                self.last_result = StorageResult.success()
                return self.last_result

            try:
                raw = json.loads(blob)
                if not isinstance(raw, list):
                    raise ValueError(f"expected a list, got {type(raw).__name__}")
                conversations = [ConversationRecord.from_storage_dict(item) for item in raw]
            except (ValueError, TypeError) as e:
                logger.warning(
                    f"Conversation history is corrupt, starting empty: {e}",
                    extra={"extra_fields": {"storage_key": self.storage_key}}
                )
                self._conversations = []
                self._in_sync = False
                self.last_result = StorageResult.error(StorageFailure.CORRUPT, str(e))
                return self.last_result

            self._conversations = conversations
            self._in_sync = True
            self.last_result = StorageResult.success()
            logger.info(f"Loaded {len(conversations)} saved conversations")
            return self.last_result

    async def save(
        self,
        user_input: UserInput,
        messages: Sequence[Message],
        recommendations: Sequence[Recommendation]
    ) -> str:
        """
        Save a new conversation at the front of the collection.

        Args:
            user_input: Consultation input snapshot
            messages: Chat turns in chronological order
            recommendations: Current recommendation cards

        Returns:
            str: Id of the new conversation (check last_result for the write outcome)
        """
        async with self._lock:
            existing_ids = {conv.id for conv in self._conversations}
            conversation_id = self._id_factory()
            while conversation_id in existing_ids:
                conversation_id = self._id_factory()

            now = self._clock()
            record = ConversationRecord(
                id=conversation_id,
                title=derive_title(user_input),
                preview=derive_preview(messages),
                created_at=now,
                updated_at=now,
                messages=[msg.model_copy(deep=True) for msg in messages],
                recommendations=[rec.model_copy(deep=True) for rec in recommendations],
                user_input=user_input.model_copy(deep=True),
            )

            result = await self._persist([record, *self._conversations])
            if result.ok:
                logger.info(
                    f"Saved conversation {conversation_id}",
                    extra={"extra_fields": {
                        "conversation_id": conversation_id,
                        "message_count": len(record.messages),
                    }}
                )
            return conversation_id

    async def update(
        self,
        conversation_id: str,
        messages: Sequence[Message],
        recommendations: Sequence[Recommendation]
    ) -> StorageResult:
        """
        Replace messages and recommendations of a saved conversation.
        Unknown ids are ignored without touching storage.

        Returns:
            StorageResult: Outcome of the write (success when nothing was written)
        """
        async with self._lock:
            index = self._find_index(conversation_id)
            if index is None:
                logger.debug(f"Update ignored, conversation {conversation_id} not found")
                self.last_result = StorageResult.success()
                return self.last_result

            current = self._conversations[index]
            updated = current.model_copy(update={
                "messages": [msg.model_copy(deep=True) for msg in messages],
                "recommendations": [rec.model_copy(deep=True) for rec in recommendations],
                "preview": derive_preview(messages, fallback=current.preview),
                "updated_at": max(self._clock(), current.updated_at),
            })

            conversations = list(self._conversations)
            conversations[index] = updated
            return await self._persist(conversations)

    async def delete(self, conversation_id: str) -> StorageResult:
        """Delete one conversation. Unknown ids are a no-op."""
        async with self._lock:
            index = self._find_index(conversation_id)
            if index is None:
                self.last_result = StorageResult.success()
                return self.last_result

            conversations = list(self._conversations)
            del conversations[index]
            result = await self._persist(conversations)
            if result.ok:
                logger.info(f"Deleted conversation {conversation_id}")
            return result

    async def clear(self) -> StorageResult:
        """Delete every conversation and remove the stored blob itself."""
        async with self._lock:
            result = await self.storage.remove(self.storage_key)
            if result.ok:
                self._conversations = []
                self._in_sync = True
                logger.info("Cleared conversation history")
            else:
                logger.warning(f"Failed to clear conversation history: {result.failure.value} {result.detail}")
            self.last_result = result
            return result

    async def flush(self) -> StorageResult:
        """
        Rewrite the current collection to storage.

        Skipped while the stored blob was never read successfully and nothing
        has been written since, so a history that failed to load (unavailable
        or corrupt) is not overwritten with an empty collection.
        """
        async with self._lock:
            if not self._in_sync:
                logger.warning(
                    "Flush skipped, stored history was not loaded",
                    extra={"extra_fields": {"storage_key": self.storage_key}}
                )
                return StorageResult.success()
            return await self._persist(list(self._conversations))

    def get(self, conversation_id: str) -> Optional[ConversationRecord]:
        """Return a copy of one conversation, or None."""
        index = self._find_index(conversation_id)
        if index is None:
            return None
        return self._conversations[index].model_copy(deep=True)

    def search(self, query: str) -> List[ConversationRecord]:
        """
        Case-insensitive substring search.

        Matches title, preview, learning goal, any interest and any message
        content. A blank query returns the whole collection.

        Args:
            query: Search text

        Returns:
            List[ConversationRecord]: Matching records in collection order
        """
        if not query.strip():
            return self.conversations

        needle = query.lower()

        def matches(conv: ConversationRecord) -> bool:
            return (
                needle in conv.title.lower()
                or needle in conv.preview.lower()
                or needle in conv.user_input.learning_goal.lower()
                or any(needle in interest.lower() for interest in conv.user_input.interests)
                or any(needle in msg.content.lower() for msg in conv.messages)
            )

        return [conv.model_copy(deep=True) for conv in self._conversations if matches(conv)]

    def list(
        self,
        order: SortOrder = SortOrder.NEWEST,
        query: Optional[str] = None
    ) -> List[ConversationRecord]:
        """Search (when ``query`` is given) and sort for the history view."""
        conversations = self.search(query) if query else self.conversations
        return sort_conversations(conversations, order)
