"""
tests/conftest.py

Shared fixtures.
"""

from __future__ import annotations

from datetime import date

import pytest

from app.domain.infraction import AcademicPeriod
from tests.factories import InMemoryInfractionStore, make_period


@pytest.fixture()
def school_year_periods() -> list[AcademicPeriod]:
    return [
        make_period(1, 1, date(2025, 8, 18), date(2025, 11, 21)),
        make_period(2, 2, date(2025, 11, 22), date(2026, 3, 6)),
        make_period(3, 3, date(2026, 3, 7), date(2026, 6, 19)),
    ]


@pytest.fixture()
def store(school_year_periods: list[AcademicPeriod]) -> InMemoryInfractionStore:
    return InMemoryInfractionStore(school_year_periods)
