"""
app/services/period_detection_service.py

Diagnostic trimester detection from raw dates.

Imports always attach the trimester the operator selected. This service only
answers "which trimester would this date fall in?" so operators can check
their period configuration and the dates in a file before uploading it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache

from app.domain.errors import PeriodNotFoundError, PeriodResolutionAmbiguity
from app.domain.infraction import AcademicPeriod, ProcessingError
from app.services.infraction_import_service import InfractionStore, read_infraction_csv
from app.services.period_resolver import (
    PeriodLayoutIssue,
    PeriodResolution,
    resolve_period,
    validate_period_layout,
)
from app.validators.date_interpreter import DateFormatError, parse_csv_date
from app.validators.infraction_row_validator import InfractionColumn, clean_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodDetection:
    raw_value: str
    parsed_date: date | None
    resolution: PeriodResolution | None
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.resolution is not None and self.resolution.found


@dataclass(frozen=True)
class RowPeriodDetection:
    row_number: int
    raw_value: str
    parsed_date: date
    period: AcademicPeriod


@dataclass(frozen=True)
class CsvPeriodPreview:
    total_rows: int
    detections: list[RowPeriodDetection] = field(default_factory=list)
    errors: list[ProcessingError] = field(default_factory=list)
    layout_issues: list[PeriodLayoutIssue] = field(default_factory=list)


class PeriodDetectionService:
    def detect(
        self,
        *,
        raw_date: str,
        store: InfractionStore,
        school_year_id: int | None = None,
    ) -> PeriodDetection:
        """
        Parse ``raw_date`` (DD/MM/YYYY) and resolve it against the active or given school year.
        """

        try:
            parsed = parse_csv_date(raw_date)
        except DateFormatError as exc:
            return PeriodDetection(raw_value=raw_date, parsed_date=None, resolution=None, error=str(exc))

        periods = store.list_academic_periods(school_year_id)
        if not periods:
            return PeriodDetection(
                raw_value=raw_date,
                parsed_date=parsed,
                resolution=None,
                error="No academic periods are configured for the requested school year.",
            )

        resolution = resolve_period(parsed, periods)
        if not resolution.found:
            logger.info(
                "Period detection failed date=%s status=%s reason=%s",
                parsed.isoformat(),
                resolution.status,
                resolution.reason,
            )
        return PeriodDetection(
            raw_value=raw_date,
            parsed_date=parsed,
            resolution=resolution,
            error=resolution.reason if not resolution.found else None,
        )

    def preview_csv(
        self,
        *,
        content: bytes | str,
        store: InfractionStore,
        school_year_id: int | None = None,
    ) -> CsvPeriodPreview:
        """
        Resolve the infraction date of every row without persisting anything.

        Raises:
            FileFormatError: the file cannot be read at all.
        """

        rows = read_infraction_csv(content)
        periods = store.list_academic_periods(school_year_id)
        layout_issues = validate_period_layout(periods)
        for issue in layout_issues:
            logger.warning(
                "Academic period layout issue school_year_id=%s code=%s message=%s",
                issue.school_year_id,
                issue.code,
                issue.message,
            )

        detections: list[RowPeriodDetection] = []
        errors: list[ProcessingError] = []
        for row_number, raw_row in rows:
            raw_value = clean_value(raw_row.get(InfractionColumn.OCCURRED_ON))
            try:
                parsed = parse_csv_date(raw_value)
                period = resolve_period(parsed, periods).require()
            except DateFormatError as exc:
                errors.append(ProcessingError(row_number=row_number, message=str(exc), data={"value": raw_value}))
                continue
            except PeriodResolutionAmbiguity as exc:
                errors.append(
                    ProcessingError(
                        row_number=row_number,
                        message=str(exc),
                        data={"value": raw_value, "trimester_ids": list(exc.trimester_ids)},
                    )
                )
                continue
            except PeriodNotFoundError as exc:
                errors.append(ProcessingError(row_number=row_number, message=str(exc), data={"value": raw_value}))
                continue

            detections.append(
                RowPeriodDetection(
                    row_number=row_number,
                    raw_value=raw_value,
                    parsed_date=parsed,
                    period=period,
                )
            )

        return CsvPeriodPreview(
            total_rows=len(rows),
            detections=detections,
            errors=errors,
            layout_issues=layout_issues,
        )


@lru_cache(maxsize=1)
def get_period_detection_service() -> PeriodDetectionService:
    return PeriodDetectionService()
