"""
app/api/routers/infraction_upload.py

Infraction CSV upload HTTP endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload, get_infraction_store, read_csv_upload
from app.domain.errors import (
    FileFormatError,
    InvalidDuplicateHandlingError,
    InvalidFaultTypeError,
    TrimesterNotFoundError,
)
from app.domain.infraction import ALLOWED_FAULT_TYPES
from app.schemas.infraction_import import (
    ImportJobAcceptedResponse,
    ImportJobStatusListResponse,
    ImportJobStatusResponse,
    ProcessingResultResponse,
    parse_duplicate_handling,
)
from app.services.import_job_service import (
    FastAPIBackgroundTaskExecutor,
    ImportJobService,
    get_import_job_service,
)
from app.services.infraction_import_service import (
    InfractionImportService,
    InfractionStore,
    get_infraction_import_service,
)
from db.models.import_job import ImportJob
from db.repositories.errors import InfractionPersistenceError
from db.session import get_db

router = APIRouter(prefix="/faltas", tags=["faltas"])


@router.post("/upload", response_model=ProcessingResultResponse)
def upload_infractions(
    file: UploadFile = Depends(get_csv_upload),
    fault_type: str = Form(..., alias="faultType"),
    trimester_id: int = Form(..., alias="trimesterId"),
    duplicate_handling: str | None = Form(default=None, alias="duplicateHandling"),
    store: InfractionStore = Depends(get_infraction_store),
    import_service: InfractionImportService = Depends(get_infraction_import_service),
) -> ProcessingResultResponse:
    """
    Import one infraction export.

    Without ``duplicateHandling`` new records are saved and duplicates are
    returned as ``pending``. Re-send the same file with ``duplicateHandling``
    to ignore or update them.
    """

    content = read_csv_upload(file)
    try:
        handling = parse_duplicate_handling(duplicate_handling)
        result = import_service.process_csv(
            content=content,
            fault_type=fault_type,
            trimester_id=trimester_id,
            store=store,
            duplicate_handling=handling,
        )
    except (FileFormatError, InvalidFaultTypeError, InvalidDuplicateHandlingError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except TrimesterNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except InfractionPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist infraction records.",
        ) from exc

    return ProcessingResultResponse.model_validate(result.to_dict())


@router.post(
    "/upload/jobs",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ImportJobAcceptedResponse,
)
def trigger_infraction_import(
    background_tasks: BackgroundTasks,
    file: UploadFile = Depends(get_csv_upload),
    fault_type: str = Form(..., alias="faultType"),
    trimester_id: int = Form(..., alias="trimesterId"),
    duplicate_handling: str | None = Form(default=None, alias="duplicateHandling"),
    db: Session = Depends(get_db),
    job_service: ImportJobService = Depends(get_import_job_service),
) -> ImportJobAcceptedResponse:
    if fault_type not in ALLOWED_FAULT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported fault type {fault_type!r}. Allowed values: {', '.join(ALLOWED_FAULT_TYPES)}.",
        )
    try:
        handling = parse_duplicate_handling(duplicate_handling)
    except InvalidDuplicateHandlingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    content = read_csv_upload(file)
    job = job_service.trigger_import(
        db=db,
        executor=FastAPIBackgroundTaskExecutor(background_tasks),
        content=content,
        file_name=file.filename or "upload.csv",
        fault_type=fault_type,
        trimester_id=trimester_id,
        duplicate_handling=handling,
    )
    return ImportJobAcceptedResponse(
        job_id=job.id,
        status=job.status,
        created_at=job.created_at,
    )


@router.get("/upload/jobs", response_model=ImportJobStatusListResponse)
def list_infraction_import_jobs(
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=100, ge=1, le=500, description="Max jobs returned"),
    db: Session = Depends(get_db),
    job_service: ImportJobService = Depends(get_import_job_service),
) -> ImportJobStatusListResponse:
    jobs = job_service.list_job_statuses(db=db, limit=limit, status=status_filter)
    return ImportJobStatusListResponse(jobs=[_to_status_response(job) for job in jobs])


@router.get("/upload/jobs/{job_id}", response_model=ImportJobStatusResponse)
def get_infraction_import_status(
    job_id: UUID,
    db: Session = Depends(get_db),
    job_service: ImportJobService = Depends(get_import_job_service),
) -> ImportJobStatusResponse:
    job = job_service.get_job_status(db=db, job_id=job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import job not found: {job_id}",
        )
    return _to_status_response(job)


def _to_status_response(job: ImportJob) -> ImportJobStatusResponse:
    return ImportJobStatusResponse(
        job_id=job.id,
        status=job.status,
        file_name=job.file_name,
        fault_type=job.fault_type,
        trimester_id=job.trimester_id,
        created_at=job.created_at,
        updated_at=job.updated_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        result=(
            ProcessingResultResponse.model_validate(job.result_payload)
            if job.result_payload is not None
            else None
        ),
        error_message=job.error_message,
    )
