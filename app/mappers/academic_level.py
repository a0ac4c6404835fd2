"""
app/mappers/academic_level.py

Classification of free-text section labels ("Décimo Segundo A",
"Kinder 4 B", ...) into coarse academic levels.

Resolution order
----------------
1. Exact match against the known section labels of every level, longest
   label first.
2. Prefix match against the same labels, longest label first, so that
   "decimo segundo a" is tried before "decimo a" and "decimo".
3. Keyword fallback from the highest grade downward ("decimo segundo"
   before "undecimo" before "decimo", ..., kinder labels last).
4. Grade-number fallback: the first standalone one- or two-digit number.

Steps 3 and 4 are best-effort. Keyword and digit matching on free text is
inherently ambiguous for multi-digit grades; add unseen sections to
``SECTION_LABELS_BY_LEVEL`` instead of relying on the fallback.
"""

from __future__ import annotations

import re
import unicodedata

from app.domain.infraction import AcademicLevel

SECTION_LABELS_BY_LEVEL: dict[str, tuple[str, ...]] = {
    AcademicLevel.EARLY_CHILDHOOD: (
        "kinder 1 a",
        "kinder 2 a",
        "kinder 2 b",
        "kinder 2 c",
        "kinder 3 a",
        "kinder 3 b",
    ),
    AcademicLevel.PRESCHOOL: (
        "kinder 4 a",
        "kinder 4 b",
        "kinder 5 a",
        "kinder 5 b",
        "primero a",
        "primero b",
    ),
    AcademicLevel.ELEMENTARY: (
        "segundo a",
        "segundo b",
        "tercero a",
        "tercero b",
        "cuarto a",
        "cuarto b",
        "quinto a",
        "quinto b",
    ),
    AcademicLevel.MIDDLE_SCHOOL: (
        "sexto",
        "septimo",
        "octavo",
        "noveno",
        "sexto a",
        "sexto b",
        "septimo a",
        "septimo b",
        "octavo a",
        "octavo b",
        "noveno a",
        "noveno b",
    ),
    AcademicLevel.HIGH_SCHOOL: (
        "decimo",
        "undecimo",
        "decimo segundo",
        "decimo a",
        "decimo b",
        "undecimo a",
        "undecimo b",
        "decimo segundo a",
        "decimo segundo b",
    ),
}

# Highest grade first. "decimo segundo" contains "segundo" and "undecimo"
# contains "decimo", so order here is load-bearing.
KEYWORD_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (AcademicLevel.HIGH_SCHOOL, ("decimo segundo", "undecimo", "decimo")),
    (AcademicLevel.MIDDLE_SCHOOL, ("noveno", "octavo", "septimo", "sexto")),
    (AcademicLevel.ELEMENTARY, ("quinto", "cuarto", "tercero", "segundo")),
    (AcademicLevel.PRESCHOOL, ("primero", "kinder 5", "kinder 4", "k5", "k4")),
    (AcademicLevel.EARLY_CHILDHOOD, ("kinder 3", "kinder 2", "kinder 1", "k3", "k2", "k1")),
)

_GRADE_NUMBER_PATTERN = re.compile(r"(?<!\d)(\d{1,2})(?!\d)")


def normalize_section(text: str | None) -> str:
    """
    Lowercase, strip diacritics, collapse whitespace and trim.
    """

    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).lower())
    without_marks = "".join(char for char in decomposed if not unicodedata.combining(char))
    return " ".join(without_marks.split())


def _build_label_index() -> tuple[tuple[str, str], ...]:
    pairs = [
        (normalize_section(label), level)
        for level, labels in SECTION_LABELS_BY_LEVEL.items()
        for label in labels
    ]
    return tuple(sorted(pairs, key=lambda pair: len(pair[0]), reverse=True))


_LABELS_LONGEST_FIRST = _build_label_index()


def _level_for_grade_number(grade: int) -> str | None:
    if 10 <= grade <= 12:
        return AcademicLevel.HIGH_SCHOOL
    if 6 <= grade <= 9:
        return AcademicLevel.MIDDLE_SCHOOL
    if 2 <= grade <= 5:
        return AcademicLevel.ELEMENTARY
    if grade == 1:
        return AcademicLevel.PRESCHOOL
    return None


def classify_academic_level(section_text: str | None) -> str:
    """
    Map a section label to an academic level. Never raises.
    """

    normalized = normalize_section(section_text)
    if not normalized:
        return AcademicLevel.UNCLASSIFIED

    for label, level in _LABELS_LONGEST_FIRST:
        if normalized == label:
            return level

    for label, level in _LABELS_LONGEST_FIRST:
        if normalized.startswith(label):
            return level

    for level, keywords in KEYWORD_RULES:
        if any(keyword in normalized for keyword in keywords):
            return level

    match = _GRADE_NUMBER_PATTERN.search(normalized)
    if match is not None:
        level = _level_for_grade_number(int(match.group(1)))
        if level is not None:
            return level

    return AcademicLevel.UNCLASSIFIED
