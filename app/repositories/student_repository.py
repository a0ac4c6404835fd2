"""
app/repositories/student_repository.py

Persistence helpers for students referenced by imported infractions.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.infraction import StudentData
from db.models.student import Student


class StudentRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_code(self, code: int) -> Student | None:
        stmt = select(Student).where(Student.code == code)
        return self._session.execute(stmt).scalars().first()

    def find_or_create(self, data: StudentData) -> Student:
        """
        Return the student with ``data.code``, creating it when absent.

        Existing students get their name, section and level refreshed from
        the latest export.
        """

        existing = self.get_by_code(data.code)
        if existing is not None:
            if data.name:
                existing.name = data.name
            if data.section:
                existing.section = data.section
                existing.academic_level = data.academic_level
            self._session.flush()
            return existing

        student = Student(
            code=data.code,
            name=data.name,
            section=data.section or None,
            academic_level=data.academic_level,
        )
        try:
            with self._session.begin_nested():
                self._session.add(student)
                self._session.flush()
        except IntegrityError:
            # Created by a concurrent import after our lookup.
            concurrent = self.get_by_code(data.code)
            if concurrent is None:
                raise
            return concurrent
        return student
