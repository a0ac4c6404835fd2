"""
tests/test_repositories.py

Pytest tests for the SQLAlchemy repositories and SQLAlchemyInfractionStore.

Runs against in-memory SQLite. pysqlite's implicit transaction handling is
replaced with explicit BEGIN so savepoints behave as they do on PostgreSQL.

Coverage
--------
- AcademicPeriodRepository: lookup, ordering, active and school-year filters
- InfractionRepository: create, hash conflict inside a savepoint, full update
- StudentRepository: create, refresh, recovery after a concurrent insert
- SQLAlchemyInfractionStore + InfractionImportService: row errors keep the batch
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from datetime import date

import pytest
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.domain.infraction import AcademicLevel, FaultType, InfractionInput, StudentData
from app.repositories.academic_period_repository import AcademicPeriodRepository
from app.repositories.infraction_repository import InfractionRepository
from app.repositories.infraction_store import SQLAlchemyInfractionStore
from app.repositories.student_repository import StudentRepository
from app.services.infraction_import_service import InfractionImportService
from db.base import Base
from db.models.infraction import Infraction
from db.models.school_year import SchoolYear, Trimester
from db.models.student import Student
from db.repositories.errors import StorageConflict
from tests.factories import build_csv, make_row

IMPORT_TABLES = [
    SchoolYear.__table__,
    Trimester.__table__,
    Student.__table__,
    Infraction.__table__,
]


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine, tables=IMPORT_TABLES)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine: Engine) -> Iterator[Session]:
    with Session(engine, autoflush=False, expire_on_commit=False) as session:
        yield session


@pytest.fixture()
def school_years(session: Session) -> dict[str, SchoolYear]:
    current = SchoolYear(
        name="2025-2026",
        start_date=date(2025, 8, 18),
        end_date=date(2026, 6, 19),
        is_active=True,
    )
    current.trimesters = [
        Trimester(name="Trimestre 3", order=3, start_date=date(2026, 3, 7), end_date=date(2026, 6, 19)),
        Trimester(name="Trimestre 1", order=1, start_date=date(2025, 8, 18), end_date=date(2025, 11, 21)),
        Trimester(name="Trimestre 2", order=2, start_date=date(2025, 11, 22), end_date=date(2026, 3, 6)),
    ]
    previous = SchoolYear(
        name="2024-2025",
        start_date=date(2024, 8, 19),
        end_date=date(2025, 6, 20),
        is_active=False,
    )
    previous.trimesters = [
        Trimester(name="Trimestre 1", order=1, start_date=date(2024, 8, 19), end_date=date(2024, 11, 22)),
    ]
    session.add_all([previous, current])
    session.commit()
    return {"current": current, "previous": previous}


def _trimester(school_year: SchoolYear, order: int) -> Trimester:
    return next(trimester for trimester in school_year.trimesters if trimester.order == order)


def _record(student: Student, trimester: Trimester, **overrides) -> InfractionInput:
    values = {
        "hash": "a" * 64,
        "student_id": student.id,
        "student_code": student.code,
        "fault_type": FaultType.TYPE_I,
        "fault_number": 12,
        "description": "Insultó a un compañero durante el recreo",
        "detail": "12. Agresión verbal",
        "remedial_actions": "Disculpa pública",
        "author": "Prof. Ruiz",
        "occurred_on": date(2025, 8, 26),
        "reported_at": date(2025, 8, 27),
        "last_edited_at": None,
        "last_editor": None,
        "section": "Décimo Segundo A",
        "academic_level": AcademicLevel.HIGH_SCHOOL,
        "trimester_id": trimester.id,
        "trimester_name": trimester.name,
        "school_year_id": trimester.school_year_id,
        "external_id": 3314,
    }
    values.update(overrides)
    return InfractionInput(**values)


@pytest.fixture()
def student(session: Session) -> Student:
    student = StudentRepository(session).find_or_create(
        StudentData(
            code=12345,
            name="Ana Pérez",
            section="Décimo Segundo A",
            academic_level=AcademicLevel.HIGH_SCHOOL,
        )
    )
    session.commit()
    return student


class TestAcademicPeriodRepository:
    def test_get_trimester(self, session: Session, school_years: dict[str, SchoolYear]) -> None:
        trimester = _trimester(school_years["current"], 2)
        period = AcademicPeriodRepository(session).get_trimester(trimester.id)

        assert period is not None
        assert period.trimester_name == "Trimestre 2"
        assert period.school_year_name == "2025-2026"
        assert period.is_active is True
        assert (period.start_date, period.end_date) == (date(2025, 11, 22), date(2026, 3, 6))

    def test_unknown_trimester_is_none(self, session: Session, school_years: dict[str, SchoolYear]) -> None:
        assert AcademicPeriodRepository(session).get_trimester(999) is None

    def test_lists_newest_year_first_and_trimesters_in_order(
        self,
        session: Session,
        school_years: dict[str, SchoolYear],
    ) -> None:
        periods = AcademicPeriodRepository(session).list_periods()
        assert [(period.school_year_name, period.order) for period in periods] == [
            ("2025-2026", 1),
            ("2025-2026", 2),
            ("2025-2026", 3),
            ("2024-2025", 1),
        ]

    def test_active_and_school_year_filters(self, session: Session, school_years: dict[str, SchoolYear]) -> None:
        repository = AcademicPeriodRepository(session)

        active = repository.list_periods(active_only=True)
        previous = repository.list_periods(school_year_id=school_years["previous"].id)

        assert {period.school_year_name for period in active} == {"2025-2026"}
        assert len(active) == 3
        assert [period.school_year_name for period in previous] == ["2024-2025"]


class TestInfractionRepository:
    def test_create_and_find_by_hash(
        self,
        session: Session,
        school_years: dict[str, SchoolYear],
        student: Student,
    ) -> None:
        repository = InfractionRepository(session)
        record = _record(student, _trimester(school_years["current"], 1))

        repository.create(record)
        session.commit()

        stored = repository.find_by_hash(record.hash)
        assert stored is not None
        assert stored.external_id == 3314
        assert stored.occurred_on == date(2025, 8, 26)

    def test_duplicate_hash_raises_conflict_and_keeps_the_transaction(
        self,
        session: Session,
        school_years: dict[str, SchoolYear],
        student: Student,
    ) -> None:
        repository = InfractionRepository(session)
        trimester = _trimester(school_years["current"], 1)
        repository.create(_record(student, trimester))
        repository.create(_record(student, trimester, hash="b" * 64, external_id=3315))

        with pytest.raises(StorageConflict) as exc_info:
            repository.create(_record(student, trimester, external_id=3316))

        assert exc_info.value.key == "a" * 64
        session.commit()
        assert session.scalar(select(func.count()).select_from(Infraction)) == 2

    def test_update_overwrites_every_field_but_the_hash(
        self,
        session: Session,
        school_years: dict[str, SchoolYear],
        student: Student,
    ) -> None:
        repository = InfractionRepository(session)
        original = _record(student, _trimester(school_years["current"], 1))
        repository.create(original)
        session.commit()

        later = _trimester(school_years["current"], 2)
        incoming = _record(
            student,
            later,
            hash="c" * 64,
            fault_type=FaultType.TYPE_III,
            fault_number=None,
            description="Descripción corregida",
            detail="",
            remedial_actions="Compromiso firmado",
            author="Prof. Gómez",
            reported_at=date(2025, 12, 1),
            last_edited_at=date(2025, 12, 2),
            last_editor="Coord. Díaz",
            section="Once A",
            external_id=9001,
        )

        assert repository.update(original.hash, incoming) is not None
        session.commit()

        stored = SQLAlchemyInfractionStore(session).find_infraction_by_hash(original.hash)
        assert stored == replace(incoming, hash=original.hash)
        assert repository.find_by_hash("c" * 64) is None

    def test_update_of_unknown_hash_returns_none(
        self,
        session: Session,
        school_years: dict[str, SchoolYear],
        student: Student,
    ) -> None:
        record = _record(student, _trimester(school_years["current"], 1), hash="f" * 64)
        assert InfractionRepository(session).update(record.hash, record) is None


class TestStudentRepository:
    def test_find_or_create_reuses_and_refreshes(self, session: Session, student: Student) -> None:
        repository = StudentRepository(session)

        again = repository.find_or_create(
            StudentData(
                code=12345,
                name="Ana María Pérez",
                section="Once A",
                academic_level=AcademicLevel.HIGH_SCHOOL,
            ),
        )
        session.commit()

        assert again.id == student.id
        assert (again.name, again.section) == ("Ana María Pérez", "Once A")
        assert session.scalar(select(func.count()).select_from(Student)) == 1

    def test_blank_export_values_keep_stored_ones(self, session: Session, student: Student) -> None:
        again = StudentRepository(session).find_or_create(StudentData(code=12345, name=""))
        assert (again.name, again.section) == ("Ana Pérez", "Décimo Segundo A")

    def test_recovers_when_another_import_created_the_student(
        self,
        session: Session,
        student: Student,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        repository = StudentRepository(session)
        real_lookup = repository.get_by_code
        calls: list[int] = []

        def stale_then_real(code: int) -> Student | None:
            # The first lookup misses as if the row were inserted right after it.
            calls.append(code)
            return None if len(calls) == 1 else real_lookup(code)

        monkeypatch.setattr(repository, "get_by_code", stale_then_real)

        resolved = repository.find_or_create(StudentData(code=12345, name="Ana Pérez"))

        assert resolved.id == student.id
        assert len(calls) == 2
        session.commit()
        assert session.scalar(select(func.count()).select_from(Student)) == 1


class TestSQLAlchemyStoreImport:
    def test_unstorable_row_does_not_abort_the_batch(
        self,
        session: Session,
        school_years: dict[str, SchoolYear],
    ) -> None:
        rows = [
            make_row(external_id="3301", code="1001", description="Falta 1"),
            make_row(external_id="3302", code="99999999999999999999", description="Falta 2"),
            make_row(external_id="3303", code="1003", section="S" * 121, description="Falta 3"),
            make_row(external_id="3304", code="1004", description="Falta 4"),
        ]
        service = InfractionImportService(max_row_errors=10, log_row_errors=False)

        result = service.process_csv(
            content=build_csv(rows),
            fault_type=FaultType.TYPE_II,
            trimester_id=_trimester(school_years["current"], 1).id,
            store=SQLAlchemyInfractionStore(session),
        )

        assert result.created == 2
        assert [error.row_number for error in result.errors] == [2, 3]
        assert session.scalar(select(func.count()).select_from(Infraction)) == 2
        assert session.scalar(select(func.count()).select_from(Student)) == 2

    def test_hash_conflict_is_not_translated_to_a_storage_failure(
        self,
        session: Session,
        school_years: dict[str, SchoolYear],
        student: Student,
    ) -> None:
        store = SQLAlchemyInfractionStore(session)
        record = _record(student, _trimester(school_years["current"], 1))
        store.create_infraction(record)

        with pytest.raises(StorageConflict):
            store.create_infraction(replace(record, external_id=3399))
