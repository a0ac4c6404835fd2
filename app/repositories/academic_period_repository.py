"""
app/repositories/academic_period_repository.py

Read access to school years and trimesters as flat academic periods.
"""

from __future__ import annotations

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from app.domain.infraction import AcademicPeriod
from db.models.school_year import SchoolYear, Trimester


class AcademicPeriodRepository:
    """
    Repository returning :class:`AcademicPeriod` views over trimester rows.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_trimester(self, trimester_id: int) -> AcademicPeriod | None:
        stmt = self._base_query().where(Trimester.id == trimester_id)
        row = self._session.execute(stmt).first()
        if row is None:
            return None
        return self._to_period(*row)

    def list_periods(
        self,
        *,
        school_year_id: int | None = None,
        active_only: bool = False,
    ) -> list[AcademicPeriod]:
        stmt = self._base_query()
        if school_year_id is not None:
            stmt = stmt.where(Trimester.school_year_id == school_year_id)
        if active_only:
            stmt = stmt.where(SchoolYear.is_active.is_(True))
        stmt = stmt.order_by(SchoolYear.start_date.desc(), Trimester.order.asc())
        return [
            self._to_period(trimester, school_year)
            for trimester, school_year in self._session.execute(stmt).all()
        ]

    @staticmethod
    def _base_query() -> Select[tuple[Trimester, SchoolYear]]:
        return select(Trimester, SchoolYear).join(SchoolYear, Trimester.school_year_id == SchoolYear.id)

    @staticmethod
    def _to_period(trimester: Trimester, school_year: SchoolYear) -> AcademicPeriod:
        return AcademicPeriod(
            school_year_id=school_year.id,
            school_year_name=school_year.name,
            is_active=school_year.is_active,
            trimester_id=trimester.id,
            trimester_name=trimester.name,
            order=trimester.order,
            start_date=trimester.start_date,
            end_date=trimester.end_date,
        )
