"""
tests/factories.py

Test data builders and in-memory storage fakes.

The fakes mirror SQLAlchemyInfractionStore, ImportJobRepository and Session
without a database.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any

from app.domain.infraction import AcademicPeriod, InfractionInput, StudentData
from db.models.import_job import ImportJob, ImportJobStatus
from db.repositories.errors import InfractionPersistenceError, StorageConflict

CSV_HEADER: tuple[str, ...] = (
    "Id",
    "Código",
    "Persona",
    "Sección",
    "Fecha De Creación",
    "Autor",
    "Fecha última Edición",
    "último Editor",
    "Fecha ",
    "Estudiante con diagnostico?",
    "Falta segun Manual de Convivencia",
    "Descripcion de la falta",
    "Acciones Reparadoras",
    "Acta de Descargos",
)


def make_row(
    *,
    external_id: str = "3314",
    code: str = "00012345",
    name: str = "Ana Pérez",
    section: str = "Décimo Segundo A",
    created_at: str = "27/08/2025 10:28",
    author: str = "Prof. Ruiz",
    last_edited_at: str = "",
    last_editor: str = "",
    occurred_on: str = "26/08/2025",
    diagnosis: str = "No",
    manual_reference: str = "12. Agresión verbal",
    description: str = "Insultó a un compañero durante el recreo",
    remedial_actions: str = "Disculpa pública",
    hearing_record: str = "Sí",
) -> tuple[str, ...]:
    return (
        external_id,
        code,
        name,
        section,
        created_at,
        author,
        last_edited_at,
        last_editor,
        occurred_on,
        diagnosis,
        manual_reference,
        description,
        remedial_actions,
        hearing_record,
    )


def build_csv(rows: Sequence[Sequence[str]], header: Sequence[str] = CSV_HEADER) -> bytes:
    lines = [";".join(header)]
    lines.extend(";".join(row) for row in rows)
    return ("\n".join(lines) + "\n").encode("utf-8")


class InMemoryInfractionStore:
    """
    Dict-backed store with the same contract as SQLAlchemyInfractionStore.

    ``conflict_hashes`` simulates a concurrent insert: the hash is invisible
    to lookups but rejected on create. ``fail_on_create`` simulates an
    unexpected database failure.
    """

    def __init__(self, periods: Sequence[AcademicPeriod] = ()) -> None:
        self.periods: list[AcademicPeriod] = list(periods)
        self.infractions: dict[str, InfractionInput] = {}
        self.students: dict[int, tuple[int, StudentData]] = {}
        self.conflict_hashes: set[str] = set()
        self.fail_on_create = False
        self.student_lookups = 0
        self.commits = 0
        self.rollbacks = 0

    def find_infraction_by_hash(self, record_hash: str) -> InfractionInput | None:
        return self.infractions.get(record_hash)

    def create_infraction(self, record: InfractionInput) -> None:
        if self.fail_on_create:
            raise InfractionPersistenceError("Database failure during create")
        if record.hash in self.conflict_hashes or record.hash in self.infractions:
            raise StorageConflict("Infraction hash already exists", key=record.hash)
        self.infractions[record.hash] = record

    def update_infraction(self, record_hash: str, record: InfractionInput) -> bool:
        if record_hash not in self.infractions:
            return False
        self.infractions[record_hash] = replace(record, hash=record_hash)
        return True

    def find_or_create_student(self, student: StudentData) -> int:
        self.student_lookups += 1
        existing = self.students.get(student.code)
        student_id = existing[0] if existing is not None else len(self.students) + 1
        self.students[student.code] = (student_id, student)
        return student_id

    def get_trimester(self, trimester_id: int) -> AcademicPeriod | None:
        for period in self.periods:
            if period.trimester_id == trimester_id:
                return period
        return None

    def list_academic_periods(self, school_year_id: int | None = None) -> list[AcademicPeriod]:
        if school_year_id is None:
            return [period for period in self.periods if period.is_active]
        return [period for period in self.periods if period.school_year_id == school_year_id]

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


def make_period(
    trimester_id: int,
    order: int,
    start: date,
    end: date,
    *,
    school_year_id: int = 1,
    school_year_name: str = "2025-2026",
    is_active: bool = True,
) -> AcademicPeriod:
    return AcademicPeriod(
        school_year_id=school_year_id,
        school_year_name=school_year_name,
        is_active=is_active,
        trimester_id=trimester_id,
        trimester_name=f"Trimestre {order}",
        order=order,
        start_date=start,
        end_date=end,
    )


class FakeSession:
    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


class InMemoryJobRepository:
    def __init__(self) -> None:
        self.jobs: dict[uuid.UUID, ImportJob] = {}

    def create_job(
        self,
        *,
        file_name: str,
        fault_type: str,
        trimester_id: int,
        request_payload: dict[str, Any] | None = None,
    ) -> ImportJob:
        now = datetime.now(timezone.utc)
        job = ImportJob(
            id=uuid.uuid4(),
            status=ImportJobStatus.PENDING,
            file_name=file_name,
            fault_type=fault_type,
            trimester_id=trimester_id,
            request_payload=request_payload,
            created_at=now,
            updated_at=now,
        )
        self.jobs[job.id] = job
        return job

    def get_job(self, job_id: uuid.UUID) -> ImportJob | None:
        return self.jobs.get(job_id)

    def list_jobs(self, *, limit: int = 100, status: str | None = None) -> list[ImportJob]:
        jobs = [job for job in self.jobs.values() if status is None or job.status == status]
        return jobs[:limit]

    def mark_running(self, *, job_id: uuid.UUID) -> ImportJob | None:
        job = self.jobs.get(job_id)
        if job is not None:
            job.status = ImportJobStatus.RUNNING
        return job

    def mark_completed(self, *, job_id: uuid.UUID, result_payload: dict[str, Any] | None = None) -> ImportJob | None:
        job = self.jobs.get(job_id)
        if job is not None:
            job.status = ImportJobStatus.COMPLETED
            job.result_payload = result_payload
        return job

    def mark_failed(self, *, job_id: uuid.UUID, error_message: str) -> ImportJob | None:
        job = self.jobs.get(job_id)
        if job is not None:
            job.status = ImportJobStatus.FAILED
            job.error_message = error_message
        return job


