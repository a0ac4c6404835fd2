"""
app/domain/errors.py

Import-flow exceptions.

``FileFormatError``, ``InvalidFaultTypeError`` and ``TrimesterNotFoundError``
abort a batch. Row and period errors are attributable to one row and are
recorded as ``ProcessingError`` entries by the import service.
"""

from __future__ import annotations

from typing import Any


class InfractionImportError(Exception):
    """Base exception for the infraction import flow."""


class FileFormatError(InfractionImportError):
    """Raised when the uploaded file cannot be read as a semicolon CSV at all."""


class InvalidFaultTypeError(InfractionImportError, ValueError):
    """Raised when the batch fault type is not one of the allowed tiers."""


class InvalidDuplicateHandlingError(InfractionImportError, ValueError):
    """Raised when a duplicate-handling payload cannot be interpreted."""


class TrimesterNotFoundError(InfractionImportError):
    """Raised when the operator-selected trimester does not exist."""

    def __init__(self, trimester_id: int) -> None:
        super().__init__(f"Trimester not found: {trimester_id}")
        self.trimester_id = trimester_id


class RowValidationError(InfractionImportError):
    """Raised when one CSV row cannot be turned into an infraction record."""

    def __init__(
        self,
        *,
        row_number: int,
        reason: str,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(reason)
        self.row_number = row_number
        self.reason = reason
        self.data = dict(data or {})


class PeriodNotFoundError(InfractionImportError):
    """Raised when no academic period covers a date."""


class PeriodResolutionAmbiguity(PeriodNotFoundError):
    """
    Raised when more than one academic period covers a date.

    Indicates overlapping trimester configuration, not bad row data.
    """

    def __init__(self, message: str, *, trimester_ids: tuple[int, ...]) -> None:
        super().__init__(message)
        self.trimester_ids = trimester_ids
