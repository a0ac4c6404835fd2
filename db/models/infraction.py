"""
db/models/infraction.py

Disciplinary infraction imported from SIS CSV exports.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import BigInteger, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Infraction(Base, TimestampMixin):
    __tablename__ = "infractions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        comment="SHA-256 of student code, infraction date and description",
    )
    student_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_code: Mapped[int] = mapped_column(BigInteger, nullable=False)
    fault_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Tipo I, Tipo II, Tipo III",
    )
    fault_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    detail: Mapped[str] = mapped_column(Text, nullable=False, default="")
    remedial_actions: Mapped[str] = mapped_column(Text, nullable=False, default="")
    author: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    occurred_on: Mapped[date] = mapped_column(Date, nullable=False)
    reported_at: Mapped[date] = mapped_column(Date, nullable=False)
    last_edited_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_editor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    section: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    academic_level: Mapped[str] = mapped_column(String(32), nullable=False)
    trimester_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("trimesters.id", ondelete="RESTRICT"),
        nullable=False,
    )
    trimester_name: Mapped[str] = mapped_column(String(120), nullable=False)
    school_year_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("school_years.id", ondelete="RESTRICT"),
        nullable=False,
    )
    external_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_infractions_student_id", "student_id"),
        Index("ix_infractions_occurred_on", "occurred_on"),
        Index("ix_infractions_trimester_id", "trimester_id"),
        Index("ix_infractions_school_year_id", "school_year_id"),
        Index("ix_infractions_academic_level", "academic_level"),
        Index("ix_infractions_fault_type", "fault_type"),
    )

    def __repr__(self) -> str:
        return f"<Infraction id={self.id} hash={self.hash[:12]} student_code={self.student_code}>"
