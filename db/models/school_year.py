"""
db/models/school_year.py

School years and their trimesters.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin


class SchoolYear(Base, TimestampMixin):
    """
    One academic year. At most one row is flagged active.
    """

    __tablename__ = "school_years"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    trimesters: Mapped[list["Trimester"]] = relationship(
        "Trimester",
        back_populates="school_year",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Trimester.order",
    )

    __table_args__ = (
        Index("ix_school_years_is_active", "is_active"),
        Index("ix_school_years_start_end", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<SchoolYear id={self.id} name={self.name!r} active={self.is_active}>"


class Trimester(Base, TimestampMixin):
    __tablename__ = "trimesters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    school_year_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("school_years.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1..3 within the school year",
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    school_year: Mapped[SchoolYear] = relationship("SchoolYear", back_populates="trimesters")

    __table_args__ = (
        UniqueConstraint("school_year_id", "order", name="uq_trimesters_school_year_order"),
        Index("ix_trimesters_school_year_id", "school_year_id"),
        Index("ix_trimesters_start_end", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<Trimester id={self.id} name={self.name!r} order={self.order}>"
