"""
Storage Interface - Abstract base class for key-value storage backends.

Each key maps to one text blob that is always replaced as a whole.
Readers raise on an unusable backend; writers never raise and report the
outcome through a StorageResult instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StorageError(Exception):
    """Base class for storage backend errors."""


class StorageUnavailableError(StorageError):
    """The storage backend cannot be read (disabled, permissions, I/O)."""


class StorageFailure(str, Enum):
    """Kinds of storage failure surfaced to callers."""
    QUOTA_EXCEEDED = "quota_exceeded"
    UNAVAILABLE = "unavailable"
    CORRUPT = "corrupt"
    INVALID_VALUE = "invalid_value"


@dataclass(frozen=True)
class StorageResult:
    """Outcome of a storage interaction."""
    ok: bool
    failure: Optional[StorageFailure] = None
    detail: str = ""

    @classmethod
    def success(cls) -> "StorageResult":
        return cls(ok=True)

    @classmethod
    def error(cls, failure: StorageFailure, detail: str = "") -> "StorageResult":
        return cls(ok=False, failure=failure, detail=detail)

    def __bool__(self) -> bool:
        return self.ok


class KeyValueStorage(ABC):
    """
    Abstract key-value storage contract.
    Implementations: LocalStorage (files), MemoryStorage (process memory).
    """

    def __init__(self, max_bytes: Optional[int] = None):
        """
        Args:
            max_bytes: Optional per-value quota in UTF-8 bytes
        """
        self.max_bytes = max_bytes

    def _check_value(self, key: str, text: str) -> Optional[StorageResult]:
        """
        Return a failure result when ``text`` cannot be stored.

        INVALID_VALUE for text that is not encodable as UTF-8 (lone
        surrogates), QUOTA_EXCEEDED when it does not fit the quota.
        """
        try:
            size = len(text.encode('utf-8'))
        except UnicodeEncodeError as e:
            return StorageResult.error(StorageFailure.INVALID_VALUE, f"Value for {key} is not valid UTF-8: {e}")
        if self.max_bytes is None:
            return None
        if size > self.max_bytes:
            return StorageResult.error(
                StorageFailure.QUOTA_EXCEEDED,
                f"Value for {key} is {size} bytes, quota is {self.max_bytes}"
            )
        return None

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under ``key``.

        Args:
            key: Storage key

        Returns:
            Optional[str]: Stored text, or None if the key is absent

        Raises:
            StorageUnavailableError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, text: str) -> StorageResult:
        """
        Replace the blob stored under ``key``.

        Args:
            key: Storage key
            text: Full value to store

        Returns:
            StorageResult: success, QUOTA_EXCEEDED, INVALID_VALUE or UNAVAILABLE
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> StorageResult:
        """
        Remove ``key``. Removing an absent key succeeds.

        Args:
            key: Storage key

        Returns:
            StorageResult: success or UNAVAILABLE
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether ``key`` currently holds a value."""
        pass
