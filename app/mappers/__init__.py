"""
app/mappers package marker.
"""

from app.mappers.academic_level import classify_academic_level, normalize_section
from app.mappers.infraction_mapper import InfractionRowMapper, StudentResolver
from app.mappers.record_hasher import compute_infraction_hash

__all__ = [
    "InfractionRowMapper",
    "StudentResolver",
    "classify_academic_level",
    "compute_infraction_hash",
    "normalize_section",
]
