"""
app/services package marker.
"""

from app.services.import_job_service import ImportJobService, get_import_job_service
from app.services.infraction_import_service import (
    InfractionImportService,
    InfractionStore,
    get_infraction_import_service,
)
from app.services.period_detection_service import PeriodDetectionService, get_period_detection_service

__all__ = [
    "ImportJobService",
    "get_import_job_service",
    "InfractionImportService",
    "InfractionStore",
    "get_infraction_import_service",
    "PeriodDetectionService",
    "get_period_detection_service",
]
