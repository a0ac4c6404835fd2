"""
db/models/student.py

Student model. Students are keyed by the SIS student code.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Student(Base, TimestampMixin):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
        comment="SIS student code",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    section: Mapped[str | None] = mapped_column(String(120), nullable=True)
    academic_level: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="Derived from section",
    )

    __table_args__ = (Index("ix_students_academic_level", "academic_level"),)

    def __repr__(self) -> str:
        return f"<Student id={self.id} code={self.code} name={self.name!r}>"
