"""
Domain exceptions raised by the coaching core.
"""

from typing import Optional

from ..storage.interface import StorageError, StorageUnavailableError

__all__ = [
    "StorageError",
    "StorageUnavailableError",
    "CoachError",
    "CoachNotConfiguredError",
    "CoachUpstreamError",
    "InvalidUserInputError",
]


class CoachError(Exception):
    """Base class for errors raised while talking to the coaching LLM."""


class CoachNotConfiguredError(CoachError):
    """No LLM provider is configured (missing API key)."""


class CoachUpstreamError(CoachError):
    """The LLM call failed or returned no text."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class InvalidUserInputError(CoachError):
    """Required consultation fields are missing."""
