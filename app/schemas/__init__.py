"""
app/schemas package marker.
"""

from app.schemas.academic_period import (
    AcademicPeriodListResponse,
    AcademicPeriodResponse,
    CsvPeriodPreviewResponse,
    PeriodDetectionResponse,
)
from app.schemas.infraction_import import (
    DuplicateHandlingPayload,
    ImportJobAcceptedResponse,
    ImportJobStatusListResponse,
    ImportJobStatusResponse,
    ProcessingResultResponse,
)

__all__ = [
    "AcademicPeriodListResponse",
    "AcademicPeriodResponse",
    "CsvPeriodPreviewResponse",
    "DuplicateHandlingPayload",
    "ImportJobAcceptedResponse",
    "ImportJobStatusListResponse",
    "ImportJobStatusResponse",
    "PeriodDetectionResponse",
    "ProcessingResultResponse",
]
