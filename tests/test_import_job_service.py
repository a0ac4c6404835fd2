"""
tests/test_import_job_service.py

Pytest unit tests for background import job orchestration.

The executor collects tasks instead of running them so each test decides
when the background part happens. Job persistence uses an in-memory
repository with the ImportJobRepository method surface.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from app.domain.infraction import DuplicateAction, DuplicateHandling
from app.services.import_job_service import ImportJobService
from app.services.infraction_import_service import InfractionImportService
from db.models.import_job import ImportJobStatus
from tests.factories import (
    FakeSession,
    InMemoryInfractionStore,
    InMemoryJobRepository,
    build_csv,
    make_row,
)


class CollectingExecutor:
    def __init__(self) -> None:
        self.tasks: list[tuple[Callable[..., None], tuple[Any, ...]]] = []

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self.tasks.append((task, args))

    def run_all(self) -> None:
        for task, args in self.tasks:
            task(*args)


class FailingExecutor:
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        raise RuntimeError("executor is shut down")


@pytest.fixture()
def repository() -> InMemoryJobRepository:
    return InMemoryJobRepository()


@pytest.fixture()
def job_service(
    tmp_path: Path,
    store: InMemoryInfractionStore,
    repository: InMemoryJobRepository,
) -> ImportJobService:
    return ImportJobService(
        session_factory=FakeSession,
        import_service=InfractionImportService(max_row_errors=10, log_row_errors=False),
        store_factory=lambda db: store,
        repository_factory=lambda db: repository,
        temp_dir=str(tmp_path),
    )


def _temp_files(tmp_path: Path) -> list[str]:
    return sorted(os.listdir(tmp_path))


class TestImportJobService:
    def test_job_is_pending_until_the_task_runs(
        self,
        job_service: ImportJobService,
        store: InMemoryInfractionStore,
        tmp_path: Path,
    ) -> None:
        executor = CollectingExecutor()
        job = job_service.trigger_import(
            db=FakeSession(),
            executor=executor,
            content=build_csv([make_row()]),
            file_name="faltas.csv",
            fault_type="Tipo I",
            trimester_id=1,
        )

        assert job.status == ImportJobStatus.PENDING
        assert job.request_payload["file_name"] == "faltas.csv"
        assert job.request_payload["duplicate_handling"] is None
        assert len(executor.tasks) == 1
        assert store.infractions == {}
        assert len(_temp_files(tmp_path)) == 1

    def test_completed_job_stores_the_result_and_removes_the_temp_file(
        self,
        job_service: ImportJobService,
        store: InMemoryInfractionStore,
        tmp_path: Path,
    ) -> None:
        executor = CollectingExecutor()
        job = job_service.trigger_import(
            db=FakeSession(),
            executor=executor,
            content=build_csv([make_row(), make_row(external_id="3315", description="Otra falta")]),
            file_name="faltas.csv",
            fault_type="Tipo II",
            trimester_id=1,
        )
        executor.run_all()

        finished = job_service.get_job_status(db=FakeSession(), job_id=job.id)
        assert finished is not None
        assert finished.status == ImportJobStatus.COMPLETED
        assert finished.result_payload["created"] == 2
        assert finished.result_payload["totalRows"] == 2
        assert len(store.infractions) == 2
        assert _temp_files(tmp_path) == []

    def test_duplicate_handling_reaches_the_import(
        self,
        job_service: ImportJobService,
        store: InMemoryInfractionStore,
    ) -> None:
        content = build_csv([make_row()])
        first = CollectingExecutor()
        job_service.trigger_import(
            db=FakeSession(),
            executor=first,
            content=content,
            file_name="faltas.csv",
            fault_type="Tipo I",
            trimester_id=1,
        )
        first.run_all()
        record_hash = next(iter(store.infractions))

        second = CollectingExecutor()
        job = job_service.trigger_import(
            db=FakeSession(),
            executor=second,
            content=build_csv([make_row(last_editor="Coord. Díaz", last_edited_at="03/09/2025")]),
            file_name="faltas.csv",
            fault_type="Tipo I",
            trimester_id=1,
            duplicate_handling=DuplicateHandling(action=DuplicateAction.UPDATE, duplicate_hashes=(record_hash,)),
        )
        second.run_all()

        assert job.request_payload["duplicate_handling"]["duplicate_hashes"] == [record_hash]
        assert job.result_payload["updated"] == 1
        assert store.infractions[record_hash].last_editor == "Coord. Díaz"

    def test_fatal_import_error_marks_the_job_failed(
        self,
        job_service: ImportJobService,
        tmp_path: Path,
    ) -> None:
        executor = CollectingExecutor()
        job = job_service.trigger_import(
            db=FakeSession(),
            executor=executor,
            content=build_csv([make_row()]),
            file_name="faltas.csv",
            fault_type="Tipo I",
            trimester_id=404,
        )
        executor.run_all()

        assert job.status == ImportJobStatus.FAILED
        assert job.error_message.startswith("TrimesterNotFoundError")
        assert _temp_files(tmp_path) == []

    def test_scheduling_failure_marks_the_job_failed(
        self,
        job_service: ImportJobService,
        repository: InMemoryJobRepository,
        tmp_path: Path,
    ) -> None:
        with pytest.raises(RuntimeError):
            job_service.trigger_import(
                db=FakeSession(),
                executor=FailingExecutor(),
                content=build_csv([make_row()]),
                file_name="faltas.csv",
                fault_type="Tipo I",
                trimester_id=1,
            )

        (job,) = repository.jobs.values()
        assert job.status == ImportJobStatus.FAILED
        assert _temp_files(tmp_path) == []

    def test_list_job_statuses_filters_by_status(
        self,
        job_service: ImportJobService,
    ) -> None:
        executor = CollectingExecutor()
        for trimester_id in (1, 404):
            job_service.trigger_import(
                db=FakeSession(),
                executor=executor,
                content=build_csv([make_row()]),
                file_name="faltas.csv",
                fault_type="Tipo I",
                trimester_id=trimester_id,
            )
        executor.run_all()

        failed = job_service.list_job_statuses(db=FakeSession(), status=ImportJobStatus.FAILED)
        assert [job.trimester_id for job in failed] == [404]
