"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.config import get_infraction_import_settings
from app.repositories.infraction_store import SQLAlchemyInfractionStore
from app.services.infraction_import_service import InfractionStore
from db.session import get_db

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}

_READ_CHUNK_BYTES = 64 * 1024


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(".csv")
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def read_csv_upload(file: UploadFile) -> bytes:
    """
    Read the whole upload, rejecting files above ``IMPORT_MAX_UPLOAD_BYTES``.
    """

    max_bytes = get_infraction_import_settings().max_upload_bytes
    chunks: list[bytes] = []
    total = 0
    try:
        while True:
            chunk = file.file.read(_READ_CHUNK_BYTES)
            if not chunk:
                break
            total += len(chunk)
            if total > max_bytes:
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=f"CSV file exceeds the maximum allowed size of {max_bytes} bytes.",
                )
            chunks.append(chunk)
    finally:
        file.file.close()

    if total == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file is empty.",
        )
    return b"".join(chunks)


def get_infraction_store(db: Session = Depends(get_db)) -> InfractionStore:
    return SQLAlchemyInfractionStore(db)
