"""
app/api/routers/trimesters.py

Academic period listing and diagnostic trimester detection endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status

from app.api.dependencies import get_csv_upload, get_infraction_store, read_csv_upload
from app.domain.errors import FileFormatError
from app.schemas.academic_period import (
    AcademicPeriodListResponse,
    AcademicPeriodResponse,
    CsvPeriodPreviewResponse,
    PeriodDetectionResponse,
    PeriodLayoutIssueResponse,
    RowPeriodDetectionResponse,
)
from app.schemas.infraction_import import ProcessingErrorResponse
from app.services.infraction_import_service import InfractionStore
from app.services.period_detection_service import (
    PeriodDetection,
    PeriodDetectionService,
    get_period_detection_service,
)

router = APIRouter(prefix="/trimestres", tags=["trimestres"])


@router.get("", response_model=AcademicPeriodListResponse)
def list_trimesters(
    school_year_id: int | None = Query(
        default=None,
        alias="schoolYearId",
        description="Optional school year; defaults to the active one",
    ),
    store: InfractionStore = Depends(get_infraction_store),
) -> AcademicPeriodListResponse:
    periods = store.list_academic_periods(school_year_id)
    return AcademicPeriodListResponse(
        periods=[AcademicPeriodResponse.from_domain(period) for period in periods],
    )


@router.get("/detect", response_model=PeriodDetectionResponse)
def detect_trimester(
    raw_date: str = Query(..., alias="date", description="Date as DD/MM/YYYY"),
    school_year_id: int | None = Query(default=None, alias="schoolYearId"),
    store: InfractionStore = Depends(get_infraction_store),
    detection_service: PeriodDetectionService = Depends(get_period_detection_service),
) -> PeriodDetectionResponse:
    """
    Report which trimester a date falls in. Imports never use this result.
    """

    detection = detection_service.detect(
        raw_date=raw_date,
        store=store,
        school_year_id=school_year_id,
    )
    return _to_detection_response(detection)


@router.post("/detect-csv", response_model=CsvPeriodPreviewResponse)
def detect_trimesters_in_csv(
    file: UploadFile = Depends(get_csv_upload),
    school_year_id: int | None = Query(default=None, alias="schoolYearId"),
    store: InfractionStore = Depends(get_infraction_store),
    detection_service: PeriodDetectionService = Depends(get_period_detection_service),
) -> CsvPeriodPreviewResponse:
    content = read_csv_upload(file)
    try:
        preview = detection_service.preview_csv(
            content=content,
            store=store,
            school_year_id=school_year_id,
        )
    except FileFormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return CsvPeriodPreviewResponse(
        total_rows=preview.total_rows,
        detections=[
            RowPeriodDetectionResponse(
                row=detection.row_number,
                raw_value=detection.raw_value,
                parsed_date=detection.parsed_date,
                trimester_id=detection.period.trimester_id,
                trimester_name=detection.period.trimester_name,
            )
            for detection in preview.detections
        ],
        errors=[
            ProcessingErrorResponse(row=error.row_number, error=error.message, data=error.data)
            for error in preview.errors
        ],
        layout_issues=[
            PeriodLayoutIssueResponse(
                school_year_id=issue.school_year_id,
                code=issue.code,
                message=issue.message,
                trimester_ids=list(issue.trimester_ids),
            )
            for issue in preview.layout_issues
        ],
    )


def _to_detection_response(detection: PeriodDetection) -> PeriodDetectionResponse:
    resolution = detection.resolution
    return PeriodDetectionResponse(
        valid=detection.is_valid,
        raw_value=detection.raw_value,
        parsed_date=detection.parsed_date,
        status=resolution.status if resolution is not None else None,
        period=(
            AcademicPeriodResponse.from_domain(resolution.period)
            if resolution is not None and resolution.period is not None
            else None
        ),
        candidate_trimester_ids=(
            [period.trimester_id for period in resolution.candidates]
            if resolution is not None
            else []
        ),
        error=detection.error,
    )
