"""
app/validators/date_interpreter.py

Parsing of the day-first date strings found in SIS CSV exports.

Values look like ``27/08/2025`` or ``27/08/2025 10:28``. They are always
read as day/month/year; there is no month-first fallback, because swapping
ambiguous values such as ``05/06/2025`` silently moves a record into another
trimester. The result is a plain ``datetime.date`` so no timezone offset can
shift the calendar day.
"""

from __future__ import annotations

from datetime import date


class DateFormatError(ValueError):
    """
    Raised when a raw value has no recognizable DD/MM/YYYY date segment.
    """

    def __init__(self, message: str, *, value: str | None = None) -> None:
        super().__init__(message)
        self.value = value


def parse_csv_date(raw: str | None) -> date:
    """
    Parse a ``DD/MM/YYYY[ HH:MM[:SS]]`` string into a calendar date.

    Raises:
        DateFormatError: blank input, wrong segment count, non-numeric
            segments, a year that is not four digits, or an impossible
            calendar date (e.g. 31/04/2025).
    """

    if raw is None or not str(raw).strip():
        raise DateFormatError("Date value is missing.", value=raw)

    text = str(raw).strip()
    date_token = text.split()[0]
    segments = date_token.split("/")
    if len(segments) != 3:
        raise DateFormatError(
            f"Expected DD/MM/YYYY, got {text!r}.",
            value=text,
        )

    day_raw, month_raw, year_raw = (segment.strip() for segment in segments)
    if not (day_raw.isdigit() and month_raw.isdigit() and year_raw.isdigit()):
        raise DateFormatError(
            f"Date segments must be numeric, got {text!r}.",
            value=text,
        )
    if len(year_raw) != 4:
        raise DateFormatError(
            f"Year must have four digits, got {text!r}.",
            value=text,
        )

    try:
        return date(int(year_raw), int(month_raw), int(day_raw))
    except ValueError as exc:
        raise DateFormatError(
            f"Invalid calendar date {text!r}: {exc}.",
            value=text,
        ) from exc


def parse_optional_csv_date(raw: str | None) -> date | None:
    """
    Like :func:`parse_csv_date` but returns None for blank input.
    """

    if raw is None or not str(raw).strip():
        return None
    return parse_csv_date(raw)
