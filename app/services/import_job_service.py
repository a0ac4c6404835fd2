"""
app/services/import_job_service.py

Background execution and status tracking for infraction CSV imports.

Large exports can be submitted as a job: the upload is written to a temp file,
an ``import_jobs`` row is created in ``pending`` state, and the import runs
after the response is sent. The job row is the only place progress lives.
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from collections.abc import Callable
from dataclasses import asdict
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_infraction_import_settings
from app.domain.infraction import DuplicateHandling
from app.repositories.infraction_store import SQLAlchemyInfractionStore
from app.services.infraction_import_service import (
    InfractionImportService,
    InfractionStore,
    get_infraction_import_service,
)
from db.models.import_job import ImportJob
from db.repositories.import_job_repository import ImportJobRepository

logger = logging.getLogger(__name__)


class ImportTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class ImportJobService:
    """
    Coordinates import job creation, background execution and status persistence.
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | Callable[[], Session] | None = None,
        import_service: InfractionImportService | None = None,
        store_factory: Callable[[Session], InfractionStore] = SQLAlchemyInfractionStore,
        repository_factory: Callable[[Session], ImportJobRepository] = ImportJobRepository,
        temp_dir: str | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory
        self._import_service = import_service or get_infraction_import_service()
        self._store_factory = store_factory
        self._repository_factory = repository_factory
        self._temp_dir = temp_dir

    def trigger_import(
        self,
        *,
        db: Session,
        executor: ImportTaskExecutor,
        content: bytes,
        file_name: str,
        fault_type: str,
        trimester_id: int,
        duplicate_handling: DuplicateHandling | None = None,
    ) -> ImportJob:
        temp_file_path = self._persist_temp_upload(content, file_name)
        request_payload = {
            "file_name": file_name,
            "file_size_bytes": len(content),
            "fault_type": fault_type,
            "trimester_id": trimester_id,
            "duplicate_handling": (
                _duplicate_handling_to_payload(duplicate_handling)
                if duplicate_handling is not None
                else None
            ),
        }

        repository = self._repository_factory(db)
        job = repository.create_job(
            file_name=file_name,
            fault_type=fault_type,
            trimester_id=trimester_id,
            request_payload=request_payload,
        )
        db.commit()

        try:
            executor.submit(
                self._run_import_job,
                job.id,
                temp_file_path,
                fault_type,
                trimester_id,
                duplicate_handling,
            )
        except Exception:
            self._delete_file_quietly(temp_file_path)
            repository.mark_failed(
                job_id=job.id,
                error_message="Failed to schedule infraction import job.",
            )
            db.commit()
            raise

        logger.info("Infraction import job scheduled id=%s file=%r", job.id, file_name)
        return job

    def get_job_status(self, *, db: Session, job_id: uuid.UUID) -> ImportJob | None:
        return self._repository_factory(db).get_job(job_id)

    def list_job_statuses(
        self,
        *,
        db: Session,
        limit: int = 100,
        status: str | None = None,
    ) -> list[ImportJob]:
        return self._repository_factory(db).list_jobs(limit=limit, status=status)

    def _run_import_job(
        self,
        job_id: uuid.UUID,
        temp_file_path: str,
        fault_type: str,
        trimester_id: int,
        duplicate_handling: DuplicateHandling | None,
    ) -> None:
        with self._session_factory() as db:
            repository = self._repository_factory(db)
            try:
                running_job = repository.mark_running(job_id=job_id)
                if running_job is None:
                    raise RuntimeError(f"Import job not found: {job_id}")
                db.commit()

                with open(temp_file_path, "rb") as file_handle:
                    content = file_handle.read()

                result = self._import_service.process_csv(
                    content=content,
                    fault_type=fault_type,
                    trimester_id=trimester_id,
                    store=self._store_factory(db),
                    duplicate_handling=duplicate_handling,
                )

                completed_job = repository.mark_completed(
                    job_id=job_id,
                    result_payload=result.to_dict(),
                )
                if completed_job is None:
                    raise RuntimeError(f"Import job not found: {job_id}")
                db.commit()
                logger.info(
                    "Infraction import job completed id=%s created=%s updated=%s errors=%s",
                    job_id,
                    result.created,
                    result.updated,
                    len(result.errors),
                )
            except Exception as exc:
                self._mark_job_failed(db=db, job_id=job_id, exc=exc)
            finally:
                self._delete_file_quietly(temp_file_path)

    def _mark_job_failed(self, *, db: Session, job_id: uuid.UUID, exc: Exception) -> None:
        repository = self._repository_factory(db)
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Infraction import job failed id=%s error=%s", job_id, error_message)
        try:
            db.rollback()
            failed_job = repository.mark_failed(
                job_id=job_id,
                error_message=error_message[:2000],
            )
            if failed_job is None:
                logger.error("Unable to mark import job as failed because it was not found id=%s", job_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed import job state id=%s", job_id)

    def _persist_temp_upload(self, content: bytes, file_name: str) -> str:
        _, ext = os.path.splitext(file_name)
        suffix = ext if ext else ".csv"
        with tempfile.NamedTemporaryFile(
            delete=False,
            prefix="infraction_import_",
            suffix=suffix,
            dir=self._temp_dir,
        ) as temp_file:
            temp_file.write(content)
            return temp_file.name

    def _delete_file_quietly(self, file_path: str) -> None:
        try:
            os.remove(file_path)
        except OSError:
            return


def _duplicate_handling_to_payload(handling: DuplicateHandling) -> dict[str, Any]:
    return {
        "action": handling.action,
        "duplicate_hashes": list(handling.duplicate_hashes),
        "decisions": [asdict(decision) for decision in handling.decisions],
    }


@lru_cache(maxsize=1)
def get_import_job_service() -> ImportJobService:
    return ImportJobService(temp_dir=get_infraction_import_settings().temp_dir)
