"""
app/repositories package marker.
"""

from app.repositories.academic_period_repository import AcademicPeriodRepository
from app.repositories.infraction_repository import InfractionRepository
from app.repositories.infraction_store import SQLAlchemyInfractionStore
from app.repositories.student_repository import StudentRepository

__all__ = [
    "AcademicPeriodRepository",
    "InfractionRepository",
    "SQLAlchemyInfractionStore",
    "StudentRepository",
]
