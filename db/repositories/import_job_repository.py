"""
db/repositories/import_job_repository.py

Repository for import job lifecycle persistence and status lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.import_job import ImportJob, ImportJobStatus


class ImportJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        file_name: str,
        fault_type: str,
        trimester_id: int,
        request_payload: dict[str, Any] | None = None,
    ) -> ImportJob:
        job = ImportJob(
            status=ImportJobStatus.PENDING,
            file_name=file_name,
            fault_type=fault_type,
            trimester_id=trimester_id,
            request_payload=request_payload,
        )
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> ImportJob | None:
        return self._session.get(ImportJob, job_id)

    def list_jobs(
        self,
        *,
        limit: int = 100,
        status: str | None = None,
    ) -> list[ImportJob]:
        stmt: Select[tuple[ImportJob]] = select(ImportJob)
        if status:
            stmt = stmt.where(ImportJob.status == status)
        stmt = stmt.order_by(ImportJob.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_running(self, *, job_id: uuid.UUID) -> ImportJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = ImportJobStatus.RUNNING
        job.started_at = datetime.now(timezone.utc)
        job.completed_at = None
        job.error_message = None
        return job

    def mark_completed(
        self,
        *,
        job_id: uuid.UUID,
        result_payload: dict[str, Any] | None = None,
    ) -> ImportJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = ImportJobStatus.COMPLETED
        job.completed_at = datetime.now(timezone.utc)
        job.result_payload = result_payload
        job.error_message = None
        return job

    def mark_failed(
        self,
        *,
        job_id: uuid.UUID,
        error_message: str,
    ) -> ImportJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = ImportJobStatus.FAILED
        job.completed_at = datetime.now(timezone.utc)
        job.error_message = error_message
        return job
