"""
Feedback Store - Appends user feedback to a JSON list in storage.
"""

import json
import logging
from typing import List

from ..models import FeedbackCreate, FeedbackEntry
from ..storage import KeyValueStorage, StorageResult
from .exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


class FeedbackStore:
    """Collects feedback entries under a single storage key."""

    def __init__(self, storage: KeyValueStorage, storage_key: str = "ai-coach-feedback"):
        self.storage = storage
        self.storage_key = storage_key

    async def list(self) -> List[FeedbackEntry]:
        """All stored feedback; unreadable data counts as none."""
        try:
            blob = await self.storage.get(self.storage_key)
            if blob is None:
                return []
            return [FeedbackEntry.model_validate(item) for item in json.loads(blob)]
        except (StorageUnavailableError, ValueError, TypeError) as e:
            logger.warning(f"Could not read feedback entries: {e}")
            return []

    async def add(self, feedback: FeedbackCreate) -> StorageResult:
        """
        Append one feedback entry.

        Args:
            feedback: Submitted feedback

        Returns:
            StorageResult: Outcome of the write
        """
        entries = await self.list()
        entries.append(FeedbackEntry(**feedback.model_dump()))
        text = json.dumps([entry.model_dump(mode="json") for entry in entries], ensure_ascii=True)

        result = await self.storage.set(self.storage_key, text)
        if result.ok:
            logger.info(
                "Feedback received",
                extra={"extra_fields": {"type": feedback.type, "rating": feedback.rating}}
            )
        else:
            logger.warning(f"Could not store feedback: {result.failure.value}")
        return result
