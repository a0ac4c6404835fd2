"""
app/mappers/infraction_mapper.py

Maps one raw SIS CSV row into a typed infraction record.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Mapping, Protocol

from app.domain.errors import RowValidationError
from app.domain.infraction import AcademicPeriod, InfractionInput, StudentData
from app.mappers.academic_level import classify_academic_level
from app.mappers.record_hasher import compute_infraction_hash
from app.validators.date_interpreter import DateFormatError, parse_csv_date, parse_optional_csv_date
from app.validators.infraction_row_validator import (
    MAX_BIGINT,
    MAX_INTEGER,
    InfractionColumn,
    InfractionRowValidator,
    clean_optional_value,
    clean_value,
    exceeds_limit,
)

logger = logging.getLogger(__name__)

_LEADING_NUMBER_PATTERN = re.compile(r"^([0-9]+)")
_NON_DIGITS_PATTERN = re.compile(r"[^0-9]")


class StudentResolver(Protocol):
    """
    Looks up a student by code, creating it when absent.
    """

    def find_or_create_student(self, student: StudentData) -> int:
        ...


def extract_student_code(raw: str | None) -> int | None:
    """
    Return the digits of a student code cell as an integer.

    None when the cell has no digits or they overflow the BIGINT column.
    """

    if not raw:
        return None
    digits = _NON_DIGITS_PATTERN.sub("", str(raw))
    if not digits or exceeds_limit(digits, MAX_BIGINT):
        return None
    return int(digits)


def extract_fault_number(manual_reference: str | None) -> int | None:
    """
    Return the leading integer of the manual-reference text, if any.

    "12. Agresión verbal" -> 12; "Agresión" -> None.
    Numbers too large for the INTEGER column are treated as absent.
    """

    if not manual_reference:
        return None
    match = _LEADING_NUMBER_PATTERN.match(str(manual_reference).strip())
    if match is None or exceeds_limit(match.group(1), MAX_INTEGER):
        return None
    return int(match.group(1))


class InfractionRowMapper:
    """
    Transforms raw CSV rows into :class:`InfractionInput` records.

    The trimester is the one the operator selected for the whole batch; it is
    attached as-is and never re-derived from the row's date.
    """

    def __init__(self, validator: InfractionRowValidator | None = None) -> None:
        self._validator = validator or InfractionRowValidator()

    def extract_student(self, row: Mapping[str, Any], *, row_number: int) -> StudentData:
        code = extract_student_code(clean_value(row.get(InfractionColumn.STUDENT_CODE)))
        if code is None:
            raise RowValidationError(
                row_number=row_number,
                reason="Student code has no digits.",
                data=_row_snapshot(row),
            )
        section = clean_value(row.get(InfractionColumn.SECTION))
        return StudentData(
            code=code,
            name=clean_value(row.get(InfractionColumn.STUDENT_NAME)),
            section=section,
            academic_level=classify_academic_level(section),
        )

    def transform(
        self,
        row: Mapping[str, Any],
        *,
        row_number: int,
        fault_type: str,
        trimester: AcademicPeriod,
        student_resolver: StudentResolver,
    ) -> InfractionInput:
        """
        Build one infraction record.

        Raises:
            RowValidationError: missing required values, values that do not
                fit their storage columns, an invalid student code or external
                id, or any unparseable date column.
        """

        problems = self._validator.missing_required_values(row) + self._validator.invalid_values(row)
        if problems:
            raise RowValidationError(
                row_number=row_number,
                reason=", ".join(problems),
                data=_row_snapshot(row),
            )

        student = self.extract_student(row, row_number=row_number)

        occurred_on = self._parse_date(row, InfractionColumn.OCCURRED_ON, row_number, "Infraction date")
        reported_at = self._parse_date(row, InfractionColumn.CREATED_AT, row_number, "Creation date")
        try:
            last_edited_at = parse_optional_csv_date(row.get(InfractionColumn.LAST_EDITED_AT))
        except DateFormatError as exc:
            raise RowValidationError(
                row_number=row_number,
                reason=f"Last edit date is invalid: {exc}",
                data=_row_snapshot(row),
            ) from exc

        description = clean_value(row.get(InfractionColumn.DESCRIPTION))
        detail = clean_value(row.get(InfractionColumn.MANUAL_REFERENCE))

        student_id = student_resolver.find_or_create_student(student)

        record = InfractionInput(
            hash=compute_infraction_hash(
                student_code=student.code,
                occurred_on=occurred_on,
                description=description,
            ),
            student_id=student_id,
            student_code=student.code,
            fault_type=fault_type,
            fault_number=extract_fault_number(detail),
            description=description,
            detail=detail,
            remedial_actions=clean_value(row.get(InfractionColumn.REMEDIAL_ACTIONS)),
            author=clean_value(row.get(InfractionColumn.AUTHOR)),
            occurred_on=occurred_on,
            reported_at=reported_at,
            last_edited_at=last_edited_at,
            last_editor=clean_optional_value(row.get(InfractionColumn.LAST_EDITOR)),
            section=student.section,
            academic_level=student.academic_level,
            trimester_id=trimester.trimester_id,
            trimester_name=trimester.trimester_name,
            school_year_id=trimester.school_year_id,
            external_id=self._parse_external_id(row, row_number),
        )
        logger.debug(
            "Mapped infraction row=%s student_code=%s hash=%s",
            row_number,
            record.student_code,
            record.hash,
        )
        return record

    @staticmethod
    def _parse_external_id(row: Mapping[str, Any], row_number: int) -> int:
        raw = clean_value(row.get(InfractionColumn.EXTERNAL_ID))
        try:
            return int(raw)
        except ValueError as exc:
            raise RowValidationError(
                row_number=row_number,
                reason="External record id must be a whole number.",
                data=_row_snapshot(row),
            ) from exc

    @staticmethod
    def _parse_date(
        row: Mapping[str, Any],
        column: str,
        row_number: int,
        label: str,
    ) -> date:
        try:
            return parse_csv_date(row.get(column))
        except DateFormatError as exc:
            raise RowValidationError(
                row_number=row_number,
                reason=f"{label} is invalid: {exc}",
                data=_row_snapshot(row),
            ) from exc


def _row_snapshot(row: Mapping[str, Any]) -> dict[str, Any]:
    return {
        str(key): clean_value(value)
        for key, value in row.items()
        if key is not None
    }
