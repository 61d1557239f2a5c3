"""
In-memory Storage Implementation.
Used for tests and for deployments that do not need data to outlive the process.
"""

from typing import Dict, Optional

from .interface import KeyValueStorage, StorageFailure, StorageResult, StorageUnavailableError


class MemoryStorage(KeyValueStorage):
    """
    Dict-backed storage.
    Setting ``available`` to False makes every call fail the way a
    restricted browser storage does.
    """

    def __init__(self, max_bytes: Optional[int] = None, available: bool = True):
        super().__init__(max_bytes)
        self.available = available
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        if not self.available:
            raise StorageUnavailableError("Storage is disabled")
        return self._data.get(key)

    async def set(self, key: str, text: str) -> StorageResult:
        if not self.available:
            return StorageResult.error(StorageFailure.UNAVAILABLE, "Storage is disabled")

        value_error = self._check_value(key, text)
        if value_error is not None:
            return value_error

        self._data[key] = text
        return StorageResult.success()

    async def remove(self, key: str) -> StorageResult:
        if not self.available:
            return StorageResult.error(StorageFailure.UNAVAILABLE, "Storage is disabled")
        self._data.pop(key, None)
        return StorageResult.success()

    async def exists(self, key: str) -> bool:
        return self.available and key in self._data
