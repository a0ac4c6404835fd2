"""create school years, trimesters, students, infractions and import_jobs

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "school_years",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_school_years"),
    )
    op.create_index("ix_school_years_is_active", "school_years", ["is_active"], unique=False)
    op.create_index("ix_school_years_start_end", "school_years", ["start_date", "end_date"], unique=False)

    op.create_table(
        "trimesters",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("school_year_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, comment="1..3 within the school year"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["school_year_id"],
            ["school_years.id"],
            name="fk_trimesters_school_year_id_school_years",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_trimesters"),
        sa.UniqueConstraint("school_year_id", "order", name="uq_trimesters_school_year_order"),
    )
    op.create_index("ix_trimesters_school_year_id", "trimesters", ["school_year_id"], unique=False)
    op.create_index("ix_trimesters_start_end", "trimesters", ["start_date", "end_date"], unique=False)

    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.BigInteger(), nullable=False, comment="SIS student code"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("section", sa.String(length=120), nullable=True),
        sa.Column("academic_level", sa.String(length=32), nullable=True, comment="Derived from section"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_students"),
        sa.UniqueConstraint("code", name="uq_students_code"),
    )
    op.create_index("ix_students_academic_level", "students", ["academic_level"], unique=False)

    op.create_table(
        "infractions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "hash",
            sa.String(length=64),
            nullable=False,
            comment="SHA-256 of student code, infraction date and description",
        ),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("student_code", sa.BigInteger(), nullable=False),
        sa.Column("fault_type", sa.String(length=16), nullable=False, comment="Tipo I, Tipo II, Tipo III"),
        sa.Column("fault_number", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("detail", sa.Text(), nullable=False),
        sa.Column("remedial_actions", sa.Text(), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=False),
        sa.Column("occurred_on", sa.Date(), nullable=False),
        sa.Column("reported_at", sa.Date(), nullable=False),
        sa.Column("last_edited_at", sa.Date(), nullable=True),
        sa.Column("last_editor", sa.String(length=255), nullable=True),
        sa.Column("section", sa.String(length=120), nullable=False),
        sa.Column("academic_level", sa.String(length=32), nullable=False),
        sa.Column("trimester_id", sa.Integer(), nullable=False),
        sa.Column("trimester_name", sa.String(length=120), nullable=False),
        sa.Column("school_year_id", sa.Integer(), nullable=False),
        sa.Column("external_id", sa.BigInteger(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["students.id"],
            name="fk_infractions_student_id_students",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["trimester_id"],
            ["trimesters.id"],
            name="fk_infractions_trimester_id_trimesters",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["school_year_id"],
            ["school_years.id"],
            name="fk_infractions_school_year_id_school_years",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_infractions"),
        sa.UniqueConstraint("hash", name="uq_infractions_hash"),
    )
    op.create_index("ix_infractions_student_id", "infractions", ["student_id"], unique=False)
    op.create_index("ix_infractions_occurred_on", "infractions", ["occurred_on"], unique=False)
    op.create_index("ix_infractions_trimester_id", "infractions", ["trimester_id"], unique=False)
    op.create_index("ix_infractions_school_year_id", "infractions", ["school_year_id"], unique=False)
    op.create_index("ix_infractions_academic_level", "infractions", ["academic_level"], unique=False)
    op.create_index("ix_infractions_fault_type", "infractions", ["fault_type"], unique=False)

    op.create_table(
        "import_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("fault_type", sa.String(length=16), nullable=False),
        sa.Column("trimester_id", sa.Integer(), nullable=False),
        sa.Column(
            "request_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Submitted form parameters and upload metadata",
        ),
        sa.Column(
            "result_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Serialized processing result",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_import_jobs"),
    )
    op.create_index("ix_import_jobs_status", "import_jobs", ["status"], unique=False)
    op.create_index("ix_import_jobs_created_at", "import_jobs", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_import_jobs_created_at", table_name="import_jobs")
    op.drop_index("ix_import_jobs_status", table_name="import_jobs")
    op.drop_table("import_jobs")

    op.drop_index("ix_infractions_fault_type", table_name="infractions")
    op.drop_index("ix_infractions_academic_level", table_name="infractions")
    op.drop_index("ix_infractions_school_year_id", table_name="infractions")
    op.drop_index("ix_infractions_trimester_id", table_name="infractions")
    op.drop_index("ix_infractions_occurred_on", table_name="infractions")
    op.drop_index("ix_infractions_student_id", table_name="infractions")
    op.drop_table("infractions")

    op.drop_index("ix_students_academic_level", table_name="students")
    op.drop_table("students")

    op.drop_index("ix_trimesters_start_end", table_name="trimesters")
    op.drop_index("ix_trimesters_school_year_id", table_name="trimesters")
    op.drop_table("trimesters")

    op.drop_index("ix_school_years_start_end", table_name="school_years")
    op.drop_index("ix_school_years_is_active", table_name="school_years")
    op.drop_table("school_years")
