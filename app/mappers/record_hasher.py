"""
app/mappers/record_hasher.py

Stable identity hash for infraction records.
"""

from __future__ import annotations

import hashlib
from datetime import date

HASH_FIELD_SEPARATOR = "|"


def _normalize_text(value: str | None) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def compute_infraction_hash(
    *,
    student_code: int | str,
    occurred_on: date,
    description: str | None,
) -> str:
    """
    Return the SHA-256 hex digest identifying one real-world infraction.

    Only content-stable fields participate. Author, editor and edit
    timestamps are excluded so a re-export of an edited record maps to the
    same hash and is reconciled as an update.
    """

    canonical = HASH_FIELD_SEPARATOR.join(
        (
            _normalize_text(str(student_code)),
            occurred_on.isoformat(),
            _normalize_text(description),
        )
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
