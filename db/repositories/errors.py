"""
db/repositories/errors.py

Repository-layer exceptions for infraction storage flows.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for storage failures."""


class StorageConflict(StorageError):
    """
    Raised when an insert loses a race on a unique key.

    For infractions this means another import stored the same hash between
    the duplicate check and the insert.
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class InfractionPersistenceError(StorageError):
    """Raised when infraction rows cannot be persisted for reasons other than a conflict."""
