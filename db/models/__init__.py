"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.import_job import ImportJob
from db.models.infraction import Infraction
from db.models.school_year import SchoolYear, Trimester
from db.models.student import Student

__all__ = [
    "ImportJob",
    "Infraction",
    "SchoolYear",
    "Student",
    "Trimester",
]
