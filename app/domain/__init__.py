"""
Domain package exports.
"""

from app.domain.errors import (
    FileFormatError,
    InfractionImportError,
    InvalidDuplicateHandlingError,
    InvalidFaultTypeError,
    PeriodNotFoundError,
    PeriodResolutionAmbiguity,
    RowValidationError,
    TrimesterNotFoundError,
)
from app.domain.infraction import (
    AcademicLevel,
    AcademicPeriod,
    DuplicateAction,
    DuplicateDecision,
    DuplicateHandling,
    DuplicateInfo,
    FaultType,
    InfractionInput,
    ProcessingError,
    ProcessingResult,
    RecordVersion,
    StudentData,
)

__all__ = [
    "AcademicLevel",
    "AcademicPeriod",
    "DuplicateAction",
    "DuplicateDecision",
    "DuplicateHandling",
    "DuplicateInfo",
    "FaultType",
    "InfractionInput",
    "ProcessingError",
    "ProcessingResult",
    "RecordVersion",
    "StudentData",
    "FileFormatError",
    "InfractionImportError",
    "InvalidDuplicateHandlingError",
    "InvalidFaultTypeError",
    "PeriodNotFoundError",
    "PeriodResolutionAmbiguity",
    "RowValidationError",
    "TrimesterNotFoundError",
]
