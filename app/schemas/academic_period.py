"""
app/schemas/academic_period.py

Response schemas for trimester listing and diagnostic period detection.
"""

from __future__ import annotations

from datetime import date

from pydantic import Field

from app.domain.infraction import AcademicPeriod
from app.schemas.infraction_import import CamelModel, ProcessingErrorResponse


class AcademicPeriodResponse(CamelModel):
    school_year_id: int
    school_year_name: str
    is_active: bool
    trimester_id: int
    trimester_name: str
    order: int
    start_date: date
    end_date: date

    @classmethod
    def from_domain(cls, period: AcademicPeriod) -> "AcademicPeriodResponse":
        return cls(
            school_year_id=period.school_year_id,
            school_year_name=period.school_year_name,
            is_active=period.is_active,
            trimester_id=period.trimester_id,
            trimester_name=period.trimester_name,
            order=period.order,
            start_date=period.start_date,
            end_date=period.end_date,
        )


class AcademicPeriodListResponse(CamelModel):
    periods: list[AcademicPeriodResponse] = Field(default_factory=list)


class PeriodDetectionResponse(CamelModel):
    """
    Outcome of resolving one raw date against the configured trimesters.
    """

    valid: bool
    raw_value: str
    parsed_date: date | None = None
    status: str | None = None
    period: AcademicPeriodResponse | None = None
    candidate_trimester_ids: list[int] = Field(default_factory=list)
    error: str | None = None


class PeriodLayoutIssueResponse(CamelModel):
    school_year_id: int
    code: str
    message: str
    trimester_ids: list[int] = Field(default_factory=list)


class RowPeriodDetectionResponse(CamelModel):
    row: int = Field(..., ge=1)
    raw_value: str
    parsed_date: date
    trimester_id: int
    trimester_name: str


class CsvPeriodPreviewResponse(CamelModel):
    total_rows: int = Field(..., ge=0)
    detections: list[RowPeriodDetectionResponse] = Field(default_factory=list)
    errors: list[ProcessingErrorResponse] = Field(default_factory=list)
    layout_issues: list[PeriodLayoutIssueResponse] = Field(default_factory=list)
