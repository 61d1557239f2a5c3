"""
Local Filesystem Storage Implementation.
Each key is stored as one UTF-8 file inside a base directory.
"""

import logging
import os
import re
import uuid
import aiofiles
from pathlib import Path
from typing import Optional

from .interface import KeyValueStorage, StorageFailure, StorageResult, StorageUnavailableError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class LocalStorage(KeyValueStorage):
    """
    Local filesystem storage implementation.
    Values are written to a temporary file and renamed into place, so a
    reader never sees a half-written blob.
    """

    def __init__(self, base_dir: str = "./data", max_bytes: Optional[int] = None):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all stored values
            max_bytes: Optional per-value quota in bytes
        """
        super().__init__(max_bytes)
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, key: str) -> Path:
        """Map a key to its file inside the base directory."""
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key}")

        full_path = (self.base_dir / f"{key}.json").resolve()

        # Security check: ensure path is within base_dir
        if full_path.parent != self.base_dir:
            raise ValueError(f"Invalid storage key: {key} - path traversal detected")

        return full_path

    async def get(self, key: str) -> Optional[str]:
        full_path = self._get_full_path(key)
        if not full_path.exists():
            return None

        try:
            async with aiofiles.open(full_path, 'rb') as f:
                content = await f.read()
            # Undecodable bytes surface later as a corrupt blob, not an I/O error
            return content.decode('utf-8', errors='replace')
        except OSError as e:
            logger.error(f"Error reading storage key {key}: {e}")
            raise StorageUnavailableError(str(e)) from e

    async def set(self, key: str, text: str) -> StorageResult:
        value_error = self._check_value(key, text)
        if value_error is not None:
            return value_error

        full_path = self._get_full_path(key)
        tmp_path = full_path.with_name(f".{full_path.name}.{uuid.uuid4().hex}.tmp")
        try:
            async with aiofiles.open(tmp_path, 'wb') as f:
                await f.write(text.encode('utf-8'))
            os.replace(tmp_path, full_path)
            return StorageResult.success()
        except OSError as e:
            logger.error(f"Error writing storage key {key}: {e}")
            return StorageResult.error(StorageFailure.UNAVAILABLE, str(e))
        finally:
            # Gone after a successful replace; left over only when the write failed
            tmp_path.unlink(missing_ok=True)

    async def remove(self, key: str) -> StorageResult:
        full_path = self._get_full_path(key)
        try:
            full_path.unlink(missing_ok=True)
            return StorageResult.success()
        except OSError as e:
            logger.error(f"Error removing storage key {key}: {e}")
            return StorageResult.error(StorageFailure.UNAVAILABLE, str(e))

    async def exists(self, key: str) -> bool:
        try:
            return self._get_full_path(key).exists()
        except ValueError:
            return False
