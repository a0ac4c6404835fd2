"""
tests/test_academic_level.py

Pytest unit tests for section label classification.
"""

from __future__ import annotations

import pytest

from app.domain.infraction import AcademicLevel, academic_level_rank
from app.mappers.academic_level import classify_academic_level, normalize_section


class TestNormalizeSection:
    def test_lowercases_and_strips_diacritics(self) -> None:
        assert normalize_section("  Décimo   Segundo A ") == "decimo segundo a"

    def test_empty(self) -> None:
        assert normalize_section(None) == ""
        assert normalize_section("   ") == ""


class TestClassifyAcademicLevel:
    @pytest.mark.parametrize(
        ("section", "expected"),
        [
            ("Décimo Segundo A", AcademicLevel.HIGH_SCHOOL),
            ("DECIMO SEGUNDO B", AcademicLevel.HIGH_SCHOOL),
            ("Undécimo A", AcademicLevel.HIGH_SCHOOL),
            ("Décimo B", AcademicLevel.HIGH_SCHOOL),
            ("Noveno A", AcademicLevel.MIDDLE_SCHOOL),
            ("Séptimo", AcademicLevel.MIDDLE_SCHOOL),
            ("Segundo A", AcademicLevel.ELEMENTARY),
            ("Quinto B", AcademicLevel.ELEMENTARY),
            ("Primero A", AcademicLevel.PRESCHOOL),
            ("Kinder 4 B", AcademicLevel.PRESCHOOL),
            ("Kinder 3 A", AcademicLevel.EARLY_CHILDHOOD),
            ("Kinder 1 A", AcademicLevel.EARLY_CHILDHOOD),
        ],
    )
    def test_known_labels(self, section: str, expected: str) -> None:
        assert classify_academic_level(section) == expected

    def test_longer_label_wins_over_its_prefix(self) -> None:
        # "decimo" is a prefix of "decimo segundo c"; both are High School but
        # "segundo" alone would be Elementary.
        assert classify_academic_level("Décimo Segundo C") == AcademicLevel.HIGH_SCHOOL

    def test_prefix_match_for_unlisted_parallel(self) -> None:
        assert classify_academic_level("Sexto C") == AcademicLevel.MIDDLE_SCHOOL
        assert classify_academic_level("Tercero C") == AcademicLevel.ELEMENTARY

    def test_keyword_fallback(self) -> None:
        assert classify_academic_level("Grupo Undécimo Bilingüe") == AcademicLevel.HIGH_SCHOOL
        assert classify_academic_level("Kinder 2 D") == AcademicLevel.EARLY_CHILDHOOD
        assert classify_academic_level("K5 mañana") == AcademicLevel.PRESCHOOL

    @pytest.mark.parametrize(
        ("section", "expected"),
        [
            ("Grado 11", AcademicLevel.HIGH_SCHOOL),
            ("Grado 12 B", AcademicLevel.HIGH_SCHOOL),
            ("7B", AcademicLevel.MIDDLE_SCHOOL),
            ("Grado 3", AcademicLevel.ELEMENTARY),
            ("1A", AcademicLevel.PRESCHOOL),
        ],
    )
    def test_grade_number_fallback(self, section: str, expected: str) -> None:
        assert classify_academic_level(section) == expected

    @pytest.mark.parametrize("section", ["", None, "Sala Cuna", "Grado 13", "Administrativo"])
    def test_unknown_is_unclassified(self, section: str | None) -> None:
        assert classify_academic_level(section) == AcademicLevel.UNCLASSIFIED


class TestAcademicLevelRank:
    def test_ordering(self) -> None:
        ranks = [
            academic_level_rank(level)
            for level in (
                AcademicLevel.EARLY_CHILDHOOD,
                AcademicLevel.PRESCHOOL,
                AcademicLevel.ELEMENTARY,
                AcademicLevel.MIDDLE_SCHOOL,
                AcademicLevel.HIGH_SCHOOL,
            )
        ]
        assert ranks == sorted(ranks)
        assert ranks[0] == 1

    def test_unclassified_is_outside_the_ordering(self) -> None:
        assert academic_level_rank(AcademicLevel.UNCLASSIFIED) == 0
