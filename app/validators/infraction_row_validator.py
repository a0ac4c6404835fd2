"""
app/validators/infraction_row_validator.py

Column names and required-value checks for SIS infraction CSV rows.
"""

from __future__ import annotations

import re
from typing import Any, Mapping


class InfractionColumn:
    EXTERNAL_ID = "Id"
    STUDENT_CODE = "Código"
    STUDENT_NAME = "Persona"
    SECTION = "Sección"
    CREATED_AT = "Fecha De Creación"
    AUTHOR = "Autor"
    LAST_EDITED_AT = "Fecha última Edición"
    LAST_EDITOR = "último Editor"
    # Exported as "Fecha " with a trailing space; headers are trimmed on read.
    OCCURRED_ON = "Fecha"
    HAS_DIAGNOSIS = "Estudiante con diagnostico?"
    MANUAL_REFERENCE = "Falta segun Manual de Convivencia"
    DESCRIPTION = "Descripcion de la falta"
    REMEDIAL_ACTIONS = "Acciones Reparadoras"
    HEARING_RECORD = "Acta de Descargos"


KNOWN_COLUMNS: tuple[str, ...] = (
    InfractionColumn.EXTERNAL_ID,
    InfractionColumn.STUDENT_CODE,
    InfractionColumn.STUDENT_NAME,
    InfractionColumn.SECTION,
    InfractionColumn.CREATED_AT,
    InfractionColumn.AUTHOR,
    InfractionColumn.LAST_EDITED_AT,
    InfractionColumn.LAST_EDITOR,
    InfractionColumn.OCCURRED_ON,
    InfractionColumn.HAS_DIAGNOSIS,
    InfractionColumn.MANUAL_REFERENCE,
    InfractionColumn.DESCRIPTION,
    InfractionColumn.REMEDIAL_ACTIONS,
    InfractionColumn.HEARING_RECORD,
)

# Upper bounds of the BIGINT and INTEGER storage columns.
MAX_BIGINT = 2**63 - 1
MAX_INTEGER = 2**31 - 1

# Character limits of the VARCHAR columns these values are stored in.
TEXT_COLUMN_LIMITS: tuple[tuple[str, int], ...] = (
    (InfractionColumn.STUDENT_NAME, 255),
    (InfractionColumn.SECTION, 120),
    (InfractionColumn.AUTHOR, 255),
    (InfractionColumn.LAST_EDITOR, 255),
)

_WHOLE_NUMBER_PATTERN = re.compile(r"[0-9]+")
_NON_DIGITS_PATTERN = re.compile(r"[^0-9]")

REQUIRED_COLUMNS: tuple[tuple[str, str], ...] = (
    (InfractionColumn.EXTERNAL_ID, "External record id is required."),
    (InfractionColumn.STUDENT_CODE, "Student code is required."),
    (InfractionColumn.STUDENT_NAME, "Student name is required."),
    (InfractionColumn.CREATED_AT, "Creation date is required."),
    (InfractionColumn.OCCURRED_ON, "Infraction date is required."),
    (InfractionColumn.DESCRIPTION, "Infraction description is required."),
)


class InfractionRowValidator:
    """
    Checks that one raw row carries every required value and that present
    values fit their storage columns.
    """

    def is_completely_empty_row(self, row: Mapping[str, Any]) -> bool:
        """
        Return True when all values in the row are empty or whitespace.
        """

        return all(self._is_blank(value) for value in row.values())

    def missing_required_values(self, row: Mapping[str, Any]) -> list[str]:
        """
        Return one message per required column that is absent or blank.
        """

        messages: list[str] = []
        for column, message in REQUIRED_COLUMNS:
            if self._is_blank(row.get(column)):
                messages.append(message)

        return messages

    def invalid_values(self, row: Mapping[str, Any]) -> list[str]:
        """
        Return one message per present value that cannot be stored as-is.

        Blank values are left to :meth:`missing_required_values`.
        """

        messages: list[str] = []

        external_id = clean_value(row.get(InfractionColumn.EXTERNAL_ID))
        if external_id:
            if not _WHOLE_NUMBER_PATTERN.fullmatch(external_id):
                messages.append("External record id must be a whole number.")
            elif exceeds_limit(external_id, MAX_BIGINT):
                messages.append("External record id is out of range.")

        code_digits = _NON_DIGITS_PATTERN.sub("", clean_value(row.get(InfractionColumn.STUDENT_CODE)))
        if code_digits and exceeds_limit(code_digits, MAX_BIGINT):
            messages.append("Student code is out of range.")

        for column, limit in TEXT_COLUMN_LIMITS:
            if len(clean_value(row.get(column))) > limit:
                messages.append(f"{column} is longer than {limit} characters.")

        return messages

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, (list, tuple)):
            return all(str(item).strip() == "" for item in value)
        return str(value).strip() == ""


def exceeds_limit(digits: str, limit: int) -> bool:
    """
    Return True when the ASCII digit string is larger than ``limit``.

    Length is compared first so oversized strings never reach ``int()``.
    """

    significant = digits.lstrip("0")
    if len(significant) > len(str(limit)):
        return True
    return int(significant or "0") > limit


def clean_value(value: Any) -> str:
    """
    Return the trimmed string form of a raw cell, empty string for None.
    """

    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(item).strip() for item in value if str(item).strip())
    return str(value).strip()


def clean_optional_value(value: Any) -> str | None:
    cleaned = clean_value(value)
    return cleaned or None
