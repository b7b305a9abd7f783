"""School schema with versioned records.

Revision ID: 0001_school_schema
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_school_schema"
down_revision = None
branch_labels = None
depends_on = None


def _versioned(table_name: str) -> tuple[sa.Column[int], sa.CheckConstraint]:
    return (
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint("version >= 1", name=op.f(f"ck_{table_name}_version_positive")),
    )


def upgrade() -> None:
    op.create_table(
        "student",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("first_mid_name", sa.String(length=50), nullable=False),
        sa.Column("enrollment_date", sa.Date(), nullable=False),
        *_versioned("student"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_student")),
    )
    op.create_table(
        "instructor",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("first_mid_name", sa.String(length=50), nullable=False),
        sa.Column("hire_date", sa.Date(), nullable=False),
        *_versioned("instructor"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_instructor")),
    )
    op.create_table(
        "department",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=True),
        sa.Column("budget", sa.Numeric(precision=19, scale=4), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("instructor_id", sa.Integer(), nullable=True),
        *_versioned("department"),
        sa.ForeignKeyConstraint(
            ["instructor_id"],
            ["instructor.id"],
            name=op.f("fk_department_instructor_id_instructor"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_department")),
    )
    op.create_table(
        "course",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("title", sa.String(length=50), nullable=True),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("department_id", sa.Integer(), nullable=False),
        *_versioned("course"),
        sa.CheckConstraint(
            "credits >= 0 AND credits <= 5", name=op.f("ck_course_credits_range")
        ),
        sa.ForeignKeyConstraint(
            ["department_id"],
            ["department.id"],
            name=op.f("fk_course_department_id_department"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_course")),
    )
    op.create_table(
        "enrollment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["course.id"],
            name=op.f("fk_enrollment_course_id_course"),
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["student.id"],
            name=op.f("fk_enrollment_student_id_student"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_enrollment")),
    )
    op.create_index(op.f("ix_enrollment_course_id"), "enrollment", ["course_id"])
    op.create_index(op.f("ix_enrollment_student_id"), "enrollment", ["student_id"])
    op.create_table(
        "office_assignment",
        sa.Column("instructor_id", sa.Integer(), nullable=False),
        sa.Column("location", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(
            ["instructor_id"],
            ["instructor.id"],
            name=op.f("fk_office_assignment_instructor_id_instructor"),
        ),
        sa.PrimaryKeyConstraint("instructor_id", name=op.f("pk_office_assignment")),
    )
    op.create_table(
        "course_instructor",
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("instructor_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["course.id"],
            name=op.f("fk_course_instructor_course_id_course"),
        ),
        sa.ForeignKeyConstraint(
            ["instructor_id"],
            ["instructor.id"],
            name=op.f("fk_course_instructor_instructor_id_instructor"),
        ),
        sa.PrimaryKeyConstraint("course_id", "instructor_id", name=op.f("pk_course_instructor")),
    )
    op.create_index(
        op.f("ix_course_instructor_instructor_id"), "course_instructor", ["instructor_id"]
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_course_instructor_instructor_id"), table_name="course_instructor")
    op.drop_table("course_instructor")
    op.drop_table("office_assignment")
    op.drop_index(op.f("ix_enrollment_student_id"), table_name="enrollment")
    op.drop_index(op.f("ix_enrollment_course_id"), table_name="enrollment")
    op.drop_table("enrollment")
    op.drop_table("course")
    op.drop_table("department")
    op.drop_table("instructor")
    op.drop_table("student")
