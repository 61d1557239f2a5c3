"""Storage module - key-value storage contract and its backends."""

from .interface import (
    KeyValueStorage, StorageError, StorageFailure, StorageResult, StorageUnavailableError
)
from .local_storage import LocalStorage
from .memory_storage import MemoryStorage
from .factory import create_storage

__all__ = [
    'KeyValueStorage',
    'StorageError',
    'StorageUnavailableError',
    'StorageFailure',
    'StorageResult',
    'LocalStorage',
    'MemoryStorage',
    'create_storage',
]
