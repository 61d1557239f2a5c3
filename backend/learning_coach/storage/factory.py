"""
Storage Factory - Creates the configured storage backend.
"""

from typing import Any

from .interface import KeyValueStorage
from .local_storage import LocalStorage
from .memory_storage import MemoryStorage


def create_storage(config: Any) -> KeyValueStorage:
    """
    Create a storage backend based on configuration.

    Args:
        config: Settings object with storage_type, local_storage_path and storage_max_bytes

    Returns:
        KeyValueStorage instance

    Raises:
        ValueError: If storage_type is not supported
    """
    if config.storage_type == "local":
        return LocalStorage(config.local_storage_path, max_bytes=config.storage_max_bytes)

    elif config.storage_type == "memory":
        return MemoryStorage(max_bytes=config.storage_max_bytes)

    else:
        raise ValueError(f"Unsupported storage type: {config.storage_type}")
