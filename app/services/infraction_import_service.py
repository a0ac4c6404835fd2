"""
app/services/infraction_import_service.py

Service layer for infraction CSV import and duplicate reconciliation.

An import runs in two passes over the same file:

    1. No duplicate policy: rows whose hash is not stored yet are created
       immediately; rows whose hash already exists are reported back as
       ``pending`` duplicates and left untouched.
    2. With a policy: each duplicate hash is ignored or overwritten
       according to the caller's decision. Hashes the caller did not
       mention are ignored.

Row-level problems never abort the batch; they are collected as
``ProcessingError`` entries. Only an unreadable file, an unknown trimester
or a storage failure propagate to the caller.
"""

from __future__ import annotations

import csv
import io
import logging
from functools import lru_cache
from typing import Any, Protocol

from app.config import get_infraction_import_settings
from app.domain.errors import (
    FileFormatError,
    InvalidFaultTypeError,
    RowValidationError,
    TrimesterNotFoundError,
)
from app.domain.infraction import (
    ALLOWED_FAULT_TYPES,
    AcademicPeriod,
    DuplicateAction,
    DuplicateHandling,
    DuplicateInfo,
    InfractionInput,
    ProcessingError,
    ProcessingResult,
    RecordVersion,
    StudentData,
)
from app.mappers.infraction_mapper import InfractionRowMapper
from app.validators.infraction_row_validator import KNOWN_COLUMNS, InfractionRowValidator
from db.repositories.errors import InfractionPersistenceError, StorageConflict

logger = logging.getLogger(__name__)

CSV_DELIMITER = ";"

RawCsvRow = dict[str, Any]


# ---------------------------------------------------------------------------
# Storage collaborator
# ---------------------------------------------------------------------------


class InfractionStore(Protocol):
    """
    Storage operations the import needs. See ``SQLAlchemyInfractionStore``.
    """

    def find_infraction_by_hash(self, record_hash: str) -> InfractionInput | None:
        ...

    def create_infraction(self, record: InfractionInput) -> None:
        ...

    def update_infraction(self, record_hash: str, record: InfractionInput) -> bool:
        ...

    def find_or_create_student(self, student: StudentData) -> int:
        ...

    def get_trimester(self, trimester_id: int) -> AcademicPeriod | None:
        ...

    def list_academic_periods(self, school_year_id: int | None = None) -> list[AcademicPeriod]:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class _BatchStudentResolver:
    """
    Memoizes student ids by code for the duration of one batch.
    """

    def __init__(self, store: InfractionStore) -> None:
        self._store = store
        self._ids_by_code: dict[int, int] = {}

    def find_or_create_student(self, student: StudentData) -> int:
        student_id = self._ids_by_code.get(student.code)
        if student_id is None:
            student_id = self._store.find_or_create_student(student)
            self._ids_by_code[student.code] = student_id
        return student_id


# ---------------------------------------------------------------------------
# CSV parsing
# ---------------------------------------------------------------------------


def read_infraction_csv(content: bytes | str) -> list[tuple[int, RawCsvRow]]:
    """
    Parse a semicolon-delimited SIS export into numbered raw rows.

    Headers are trimmed ("Fecha " maps to "Fecha"). Row numbers are 1-based
    over data records, header excluded. Completely empty records are skipped
    but still consume their row number.

    Raises:
        FileFormatError: undecodable bytes, no header, malformed CSV, or a
            header containing none of the known columns.
    """

    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise FileFormatError("CSV must be UTF-8 encoded.") from exc
    else:
        text = content.lstrip("\ufeff")

    validator = InfractionRowValidator()
    stream = io.StringIO(text, newline="")
    try:
        header_reader = csv.reader(stream, delimiter=CSV_DELIMITER)
        header = next(header_reader, None)
        if not header or all(not column.strip() for column in header):
            raise FileFormatError("CSV header row is missing.")

        headers = [column.strip() for column in header]
        if not set(headers).intersection(KNOWN_COLUMNS):
            raise FileFormatError(
                "CSV header has none of the expected columns. "
                "The file must be a semicolon-delimited infraction export."
            )

        reader = csv.DictReader(stream, fieldnames=headers, delimiter=CSV_DELIMITER)
        rows: list[tuple[int, RawCsvRow]] = []
        for row_number, raw_row in enumerate(reader, start=1):
            if validator.is_completely_empty_row(raw_row):
                continue
            rows.append((row_number, dict(raw_row)))
    except csv.Error as exc:
        raise FileFormatError(f"Invalid CSV format: {exc}") from exc

    return rows


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class InfractionImportService:
    """
    Coordinates CSV parsing, row transformation, duplicate detection and persistence.
    """

    def __init__(
        self,
        *,
        max_row_errors: int,
        log_row_errors: bool,
        duplicate_preview_length: int = 100,
        mapper: InfractionRowMapper | None = None,
    ) -> None:
        self._max_row_errors = max(1, max_row_errors)
        self._log_row_errors = log_row_errors
        self._duplicate_preview_length = max(10, duplicate_preview_length)
        self._mapper = mapper or InfractionRowMapper()

    def process_csv(
        self,
        *,
        content: bytes | str,
        fault_type: str,
        trimester_id: int,
        store: InfractionStore,
        duplicate_handling: DuplicateHandling | None = None,
    ) -> ProcessingResult:
        """
        Import one CSV export for the operator-selected fault type and trimester.

        Args:
            content:            Raw file content.
            fault_type:         "Tipo I", "Tipo II" or "Tipo III"; applied to every row.
            trimester_id:       Trimester every row is attached to.
            store:              Storage collaborator (caller owns its session).
            duplicate_handling: None on the first pass; the caller's decisions on
                                the second pass.

        Raises:
            InvalidFaultTypeError, TrimesterNotFoundError, FileFormatError,
            InfractionPersistenceError.
        """

        if fault_type not in ALLOWED_FAULT_TYPES:
            allowed = ", ".join(ALLOWED_FAULT_TYPES)
            raise InvalidFaultTypeError(f"Unsupported fault type {fault_type!r}. Allowed values: {allowed}.")

        trimester = store.get_trimester(trimester_id)
        if trimester is None:
            raise TrimesterNotFoundError(trimester_id)

        rows = read_infraction_csv(content)
        committing = duplicate_handling is not None
        logger.info(
            "Infraction import started rows=%s fault_type=%r trimester_id=%s committing=%s",
            len(rows),
            fault_type,
            trimester.trimester_id,
            committing,
        )

        resolver = _BatchStudentResolver(store)
        created = 0
        updated = 0
        error_count = 0
        errors: list[ProcessingError] = []
        duplicates: list[DuplicateInfo] = []

        try:
            for row_number, raw_row in rows:
                try:
                    record = self._mapper.transform(
                        raw_row,
                        row_number=row_number,
                        fault_type=fault_type,
                        trimester=trimester,
                        student_resolver=resolver,
                    )
                except RowValidationError as exc:
                    error_count += 1
                    self._record_error(
                        errors,
                        ProcessingError(row_number=exc.row_number, message=exc.reason, data=exc.data),
                    )
                    continue

                existing = store.find_infraction_by_hash(record.hash)
                if existing is None:
                    try:
                        store.create_infraction(record)
                    except StorageConflict:
                        error_count += 1
                        self._record_error(
                            errors,
                            ProcessingError(
                                row_number=row_number,
                                message=(
                                    "Record became a duplicate concurrently "
                                    f"(hash {record.hash}); upload the file again to reconcile it."
                                ),
                                data={"hash": record.hash},
                            ),
                        )
                        continue
                    created += 1
                    continue

                action = (
                    duplicate_handling.action_for(record.hash)
                    if duplicate_handling is not None
                    else DuplicateAction.PENDING
                )
                if action == DuplicateAction.UPDATE:
                    if not store.update_infraction(record.hash, record):
                        error_count += 1
                        self._record_error(
                            errors,
                            ProcessingError(
                                row_number=row_number,
                                message=f"Stored record {record.hash} disappeared before it could be updated.",
                                data={"hash": record.hash},
                            ),
                        )
                        continue
                    updated += 1

                duplicates.append(
                    self._describe_duplicate(
                        existing=existing,
                        incoming=record,
                        action=action,
                        row_number=row_number,
                    )
                )

            store.commit()
        except InfractionPersistenceError:
            store.rollback()
            logger.exception("Infraction import aborted by a storage failure")
            raise

        # Only rows that were written count as processed.
        processed = created + updated
        result = ProcessingResult(
            success=True,
            message=self._build_message(
                total_rows=len(rows),
                processed=processed,
                created=created,
                updated=updated,
                pending_duplicates=0 if committing else len(duplicates),
                error_count=error_count,
            ),
            total_rows=len(rows),
            processed_rows=processed,
            created=created,
            updated=updated,
            duplicates=duplicates,
            errors=errors,
        )
        logger.info(
            "Infraction import finished total=%s processed=%s created=%s updated=%s duplicates=%s errors=%s",
            result.total_rows,
            result.processed_rows,
            result.created,
            result.updated,
            len(result.duplicates),
            error_count,
        )
        return result

    def _describe_duplicate(
        self,
        *,
        existing: InfractionInput,
        incoming: InfractionInput,
        action: str,
        row_number: int,
    ) -> DuplicateInfo:
        description = incoming.description
        if len(description) > self._duplicate_preview_length:
            description = description[: self._duplicate_preview_length] + "..."
        return DuplicateInfo(
            hash=incoming.hash,
            description=description,
            existing=RecordVersion(
                reported_at=existing.reported_at,
                last_edited_at=existing.last_edited_at,
                last_editor=existing.last_editor or existing.author or None,
            ),
            incoming=RecordVersion(
                reported_at=incoming.reported_at,
                last_edited_at=incoming.last_edited_at,
                last_editor=incoming.last_editor or incoming.author or None,
            ),
            action=action,
            row_number=row_number,
        )

    @staticmethod
    def _build_message(
        *,
        total_rows: int,
        processed: int,
        created: int,
        updated: int,
        pending_duplicates: int,
        error_count: int,
    ) -> str:
        if pending_duplicates:
            message = (
                f"Found {pending_duplicates} duplicate record(s). Choose how to handle them. "
                f"{created} new record(s) were saved."
            )
        else:
            message = (
                f"Processing completed. {processed} of {total_rows} rows processed "
                f"({created} created, {updated} updated)."
            )
        if error_count:
            message += f" {error_count} error(s) found."
        return message

    def _record_error(
        self,
        captured_errors: list[ProcessingError],
        error: ProcessingError,
    ) -> None:
        if self._log_row_errors:
            logger.warning(
                "Infraction import row error row=%s message=%s",
                error.row_number,
                error.message,
            )

        if len(captured_errors) < self._max_row_errors:
            captured_errors.append(error)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_infraction_import_service() -> InfractionImportService:
    """
    Build and cache the import service with env-driven settings.
    """

    settings = get_infraction_import_settings()
    return InfractionImportService(
        max_row_errors=settings.max_row_errors,
        log_row_errors=settings.log_row_errors,
        duplicate_preview_length=settings.duplicate_preview_length,
    )
