"""
Repository layer exports.
"""

from db.repositories.errors import (
    InfractionPersistenceError,
    StorageConflict,
    StorageError,
)
from db.repositories.import_job_repository import ImportJobRepository

__all__ = [
    "ImportJobRepository",
    "InfractionPersistenceError",
    "StorageConflict",
    "StorageError",
]
