"""
app/schemas/infraction_import.py

Request and response schemas for infraction CSV upload endpoints.

Responses are serialized with camelCase keys to match the existing upload
client contract.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from app.domain.errors import InvalidDuplicateHandlingError
from app.domain.infraction import (
    ALLOWED_DUPLICATE_ACTIONS,
    DuplicateAction,
    DuplicateDecision,
    DuplicateHandling,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_action(value: str) -> str:
    if value not in ALLOWED_DUPLICATE_ACTIONS:
        allowed = ", ".join(sorted(ALLOWED_DUPLICATE_ACTIONS))
        raise ValueError(f"Unsupported duplicate action {value!r}. Allowed values: {allowed}.")
    return value


class DuplicateDecisionPayload(CamelModel):
    hash: str = Field(..., min_length=1)
    action: str

    @field_validator("action")
    @classmethod
    def validate_action(cls, value: str) -> str:
        return _check_action(value)


class DuplicateHandlingPayload(CamelModel):
    """
    Second-pass duplicate policy sent as the ``duplicateHandling`` form field.

    Either a bulk ``action`` applied to ``duplicateHashes`` or a list of
    per-hash ``decisions`` (or both; decisions win).
    """

    action: str = DuplicateAction.IGNORE
    duplicate_hashes: list[str] = Field(default_factory=list)
    decisions: list[DuplicateDecisionPayload] = Field(default_factory=list)

    @field_validator("action")
    @classmethod
    def validate_action(cls, value: str) -> str:
        return _check_action(value)

    def to_domain(self) -> DuplicateHandling:
        return DuplicateHandling(
            action=self.action,
            duplicate_hashes=tuple(self.duplicate_hashes),
            decisions=tuple(
                DuplicateDecision(hash=decision.hash, action=decision.action)
                for decision in self.decisions
            ),
        )


def parse_duplicate_handling(raw_value: str | None) -> DuplicateHandling | None:
    """
    Parse the optional ``duplicateHandling`` JSON form field.

    Raises:
        InvalidDuplicateHandlingError: the value is not valid JSON or has the wrong shape.
    """

    if raw_value is None or not raw_value.strip():
        return None
    try:
        payload = DuplicateHandlingPayload.model_validate_json(raw_value)
    except ValidationError as exc:
        raise InvalidDuplicateHandlingError(f"Invalid duplicateHandling value: {exc.errors()[0]['msg']}") from exc
    return payload.to_domain()


class RecordVersionResponse(CamelModel):
    reported_at: date | datetime | None = None
    last_edited_at: date | datetime | None = None
    last_editor: str | None = None


class DuplicateInfoResponse(CamelModel):
    hash: str
    description: str
    row_number: int | None = None
    action: str
    existing_record: RecordVersionResponse
    new_record: RecordVersionResponse


class ProcessingErrorResponse(CamelModel):
    row: int = Field(..., ge=1)
    error: str
    data: dict[str, Any] = Field(default_factory=dict)


class ProcessingResultResponse(CamelModel):
    """
    API response model for one infraction CSV import.
    """

    success: bool
    message: str
    total_rows: int = Field(..., ge=0)
    processed_rows: int = Field(..., ge=0)
    created: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    duplicates: list[DuplicateInfoResponse] = Field(default_factory=list)
    errors: list[ProcessingErrorResponse] = Field(default_factory=list)


class ImportJobAcceptedResponse(CamelModel):
    job_id: UUID
    status: str
    created_at: datetime


class ImportJobStatusResponse(CamelModel):
    job_id: UUID
    status: str
    file_name: str
    fault_type: str
    trimester_id: int
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result: ProcessingResultResponse | None = None
    error_message: str | None = None


class ImportJobStatusListResponse(CamelModel):
    jobs: list[ImportJobStatusResponse] = Field(default_factory=list)
