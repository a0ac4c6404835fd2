"""
app/api/routers package marker.
"""

from app.api.routers.infraction_upload import router as infraction_upload_router
from app.api.routers.trimesters import router as trimesters_router

__all__ = [
    "infraction_upload_router",
    "trimesters_router",
]
