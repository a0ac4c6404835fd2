"""
app/repositories/infraction_store.py

SQLAlchemy-backed storage collaborator for the infraction import service.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.infraction import AcademicPeriod, InfractionInput, StudentData
from app.repositories.academic_period_repository import AcademicPeriodRepository
from app.repositories.infraction_repository import InfractionRepository
from app.repositories.student_repository import StudentRepository
from db.models.infraction import Infraction
from db.repositories.errors import InfractionPersistenceError, StorageConflict


class SQLAlchemyInfractionStore:
    """
    Composes the infraction, student and period repositories over one session.

    The caller owns the session lifecycle; :meth:`commit` and :meth:`rollback`
    close the import's unit of work.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._infractions = InfractionRepository(session)
        self._students = StudentRepository(session)
        self._periods = AcademicPeriodRepository(session)

    def find_infraction_by_hash(self, record_hash: str) -> InfractionInput | None:
        with self._translate_errors("look up infraction"):
            row = self._infractions.find_by_hash(record_hash)
        if row is None:
            return None
        return _to_input(row)

    def create_infraction(self, record: InfractionInput) -> None:
        with self._translate_errors("create infraction"):
            self._infractions.create(record)

    def update_infraction(self, record_hash: str, record: InfractionInput) -> bool:
        with self._translate_errors("update infraction"):
            return self._infractions.update(record_hash, record) is not None

    def find_or_create_student(self, student: StudentData) -> int:
        with self._translate_errors("resolve student"):
            return self._students.find_or_create(student).id

    def get_trimester(self, trimester_id: int) -> AcademicPeriod | None:
        with self._translate_errors("load trimester"):
            return self._periods.get_trimester(trimester_id)

    def list_academic_periods(self, school_year_id: int | None = None) -> list[AcademicPeriod]:
        with self._translate_errors("list academic periods"):
            if school_year_id is None:
                return self._periods.list_periods(active_only=True)
            return self._periods.list_periods(school_year_id=school_year_id)

    def commit(self) -> None:
        with self._translate_errors("commit import"):
            self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except StorageConflict:
            raise
        except SQLAlchemyError as exc:
            raise InfractionPersistenceError(f"Failed to {action}.") from exc


def _to_input(row: Infraction) -> InfractionInput:
    return InfractionInput(
        **{name: getattr(row, name) for name in InfractionInput.__dataclass_fields__}
    )
