"""
app/domain/infraction.py

Domain models used by the infraction CSV import flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


class FaultType:
    TYPE_I = "Tipo I"
    TYPE_II = "Tipo II"
    TYPE_III = "Tipo III"


ALLOWED_FAULT_TYPES: tuple[str, ...] = (
    FaultType.TYPE_I,
    FaultType.TYPE_II,
    FaultType.TYPE_III,
)


class AcademicLevel:
    EARLY_CHILDHOOD = "Early Childhood"
    PRESCHOOL = "Preschool"
    ELEMENTARY = "Elementary"
    MIDDLE_SCHOOL = "Middle School"
    HIGH_SCHOOL = "High School"
    UNCLASSIFIED = "Unclassified"


# Lowest grade band first. Unclassified sits outside the ordering.
ACADEMIC_LEVEL_ORDER: tuple[str, ...] = (
    AcademicLevel.EARLY_CHILDHOOD,
    AcademicLevel.PRESCHOOL,
    AcademicLevel.ELEMENTARY,
    AcademicLevel.MIDDLE_SCHOOL,
    AcademicLevel.HIGH_SCHOOL,
)


def academic_level_rank(level: str) -> int:
    """
    Return the 1-based position of ``level`` in the grade ordering, 0 when unclassified.
    """

    try:
        return ACADEMIC_LEVEL_ORDER.index(level) + 1
    except ValueError:
        return 0


class DuplicateAction:
    PENDING = "pending"
    IGNORE = "ignore"
    UPDATE = "update"


ALLOWED_DUPLICATE_ACTIONS = {DuplicateAction.IGNORE, DuplicateAction.UPDATE}


@dataclass(frozen=True)
class AcademicPeriod:
    """
    One trimester flattened together with its parent school year.
    """

    school_year_id: int
    school_year_name: str
    is_active: bool
    trimester_id: int
    trimester_name: str
    order: int
    start_date: date
    end_date: date

    def contains(self, value: date) -> bool:
        return self.start_date <= value <= self.end_date


@dataclass(frozen=True)
class StudentData:
    """
    Student identity fields extracted from one CSV row.
    """

    code: int
    name: str
    section: str = ""
    academic_level: str = AcademicLevel.UNCLASSIFIED


@dataclass(frozen=True)
class InfractionInput:
    """
    Fully-populated infraction record prepared for persistence.
    """

    hash: str
    student_id: int
    student_code: int
    fault_type: str
    fault_number: int | None
    description: str
    detail: str
    remedial_actions: str
    author: str
    occurred_on: date
    reported_at: date
    last_edited_at: date | None
    last_editor: str | None
    section: str
    academic_level: str
    trimester_id: int
    trimester_name: str
    school_year_id: int
    external_id: int


@dataclass(frozen=True)
class DuplicateDecision:
    hash: str
    action: str


@dataclass(frozen=True)
class DuplicateHandling:
    """
    Second-pass policy supplied by the caller.

    ``action`` applies to every hash in ``duplicate_hashes``; ``decisions``
    carries explicit per-hash choices and wins over the bulk action.
    Hashes mentioned nowhere resolve to ``ignore``.
    """

    action: str = DuplicateAction.IGNORE
    duplicate_hashes: tuple[str, ...] = ()
    decisions: tuple[DuplicateDecision, ...] = ()

    def action_for(self, record_hash: str) -> str:
        for decision in self.decisions:
            if decision.hash == record_hash:
                return decision.action
        if record_hash in self.duplicate_hashes:
            return self.action
        return DuplicateAction.IGNORE


@dataclass(frozen=True)
class RecordVersion:
    """
    Creation/edit metadata for one side of a duplicate pair.
    """

    reported_at: date | datetime | None
    last_edited_at: date | datetime | None = None
    last_editor: str | None = None


@dataclass(frozen=True)
class DuplicateInfo:
    hash: str
    description: str
    existing: RecordVersion
    incoming: RecordVersion
    action: str = DuplicateAction.PENDING
    row_number: int | None = None


@dataclass(frozen=True)
class ProcessingError:
    """
    One row-level import failure.
    """

    row_number: int
    message: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProcessingResult:
    """
    End-of-run import summary.
    """

    success: bool
    message: str
    total_rows: int
    processed_rows: int
    created: int
    updated: int
    duplicates: list[DuplicateInfo] = field(default_factory=list)
    errors: list[ProcessingError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "totalRows": self.total_rows,
            "processedRows": self.processed_rows,
            "created": self.created,
            "updated": self.updated,
            "duplicates": [
                {
                    "hash": duplicate.hash,
                    "description": duplicate.description,
                    "rowNumber": duplicate.row_number,
                    "action": duplicate.action,
                    "existingRecord": _version_to_dict(duplicate.existing),
                    "newRecord": _version_to_dict(duplicate.incoming),
                }
                for duplicate in self.duplicates
            ],
            "errors": [
                {
                    "row": error.row_number,
                    "error": error.message,
                    "data": error.data,
                }
                for error in self.errors
            ],
        }


def _version_to_dict(version: RecordVersion) -> dict[str, Any]:
    return {
        "reportedAt": version.reported_at.isoformat() if version.reported_at else None,
        "lastEditedAt": version.last_edited_at.isoformat() if version.last_edited_at else None,
        "lastEditor": version.last_editor,
    }
