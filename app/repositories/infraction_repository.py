"""
app/repositories/infraction_repository.py

Persistence layer for infraction records.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.infraction import InfractionInput
from db.models.infraction import Infraction
from db.repositories.errors import StorageConflict

# Columns overwritten when an operator chooses to update a duplicate.
_UPDATABLE_FIELDS: tuple[str, ...] = tuple(
    name for name in InfractionInput.__dataclass_fields__ if name != "hash"
)


class InfractionRepository:
    """
    Repository for hash-keyed infraction lookups, inserts and overwrites.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_hash(self, record_hash: str) -> Infraction | None:
        stmt = select(Infraction).where(Infraction.hash == record_hash)
        return self._session.execute(stmt).scalars().first()

    def create(self, record: InfractionInput) -> Infraction:
        """
        Insert one infraction inside a savepoint.

        Raises:
            StorageConflict: the hash already exists (unique constraint).
        """

        infraction = Infraction(**self._to_payload(record))
        try:
            with self._session.begin_nested():
                self._session.add(infraction)
                self._session.flush()
        except IntegrityError as exc:
            raise StorageConflict(
                f"Infraction hash already stored: {record.hash}",
                key=record.hash,
            ) from exc
        return infraction

    def update(self, record_hash: str, record: InfractionInput) -> Infraction | None:
        """
        Overwrite every stored field except the hash. Returns None when the hash is unknown.
        """

        existing = self.find_by_hash(record_hash)
        if existing is None:
            return None
        payload = self._to_payload(record)
        for name in _UPDATABLE_FIELDS:
            setattr(existing, name, payload[name])
        self._session.flush()
        return existing

    @staticmethod
    def _to_payload(record: InfractionInput) -> dict[str, Any]:
        return asdict(record)
