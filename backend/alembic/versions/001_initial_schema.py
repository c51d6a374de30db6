# backend/alembic/versions/001_initial_schema.py
"""Initial schema - profiles, instructor assets, slots, appointments

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Roles, verification states, license categories and appointment statuses are
stored as VARCHAR with CHECK constraints rather than database enums.
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LICENSE_CATEGORIES = "('A', 'B', 'AB', 'ACC')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    print("Creating initial schema...")

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("document_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("national_id", sa.String(32), nullable=True),
        sa.Column("license_number", sa.String(32), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('STUDENT', 'INSTRUCTOR', 'ADMIN')", name="ck_profiles_role"),
    )
    op.create_index("ix_profiles_id", "profiles", ["id"])
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_role", "profiles", ["role"])

    op.create_table(
        "instructor_assets",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("instructor_id", sa.String(26), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("vehicle_model", sa.String(120), nullable=True),
        sa.Column("license_plate", sa.String(16), nullable=True),
        sa.Column("license_category", sa.String(8), nullable=True),
        sa.Column("license_photo_url", sa.String(1024), nullable=True),
        sa.Column("credential_photo_url", sa.String(1024), nullable=True),
        sa.Column(
            "verification_status", sa.String(20), nullable=False, server_default="pending"
        ),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by_id", sa.String(26), sa.ForeignKey("profiles.id"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "verification_status IN ('pending', 'approved', 'rejected')",
            name="ck_instructor_assets_verification_status",
        ),
        sa.CheckConstraint(
            f"license_category IS NULL OR license_category IN {LICENSE_CATEGORIES}",
            name="ck_instructor_assets_license_category",
        ),
    )
    op.create_index("ix_instructor_assets_id", "instructor_assets", ["id"])
    op.create_index(
        "ix_instructor_assets_instructor_id", "instructor_assets", ["instructor_id"], unique=True
    )
    op.create_index(
        "ix_instructor_assets_verification_status", "instructor_assets", ["verification_status"]
    )

    op.create_table(
        "slots",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("instructor_id", sa.String(26), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("location_address", sa.String(255), nullable=False),
        sa.Column("license_category", sa.String(8), nullable=True),
        sa.Column("is_booked", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="ck_slots_time_order"),
        sa.CheckConstraint("price >= 0", name="ck_slots_price_non_negative"),
        sa.CheckConstraint(
            f"license_category IS NULL OR license_category IN {LICENSE_CATEGORIES}",
            name="ck_slots_license_category",
        ),
    )
    op.create_index("ix_slots_id", "slots", ["id"])
    op.create_index("ix_slots_instructor_id", "slots", ["instructor_id"])
    op.create_index("ix_slots_instructor_start", "slots", ["instructor_id", "start_time"])
    op.create_index("ix_slots_available", "slots", ["instructor_id", "is_booked", "start_time"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("slot_id", sa.String(26), sa.ForeignKey("slots.id"), nullable=False),
        sa.Column("student_id", sa.String(26), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("instructor_id", sa.String(26), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_id", sa.String(26), sa.ForeignKey("profiles.id"), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_appointments_status",
        ),
    )
    op.create_index("ix_appointments_id", "appointments", ["id"])
    op.create_index("ix_appointments_slot_id", "appointments", ["slot_id"])
    op.create_index("ix_appointments_student_id", "appointments", ["student_id"])
    op.create_index("ix_appointments_instructor_id", "appointments", ["instructor_id"])
    op.create_index("ix_appointments_status", "appointments", ["status"])
    op.create_index(
        "ix_appointments_student_created", "appointments", ["student_id", "created_at"]
    )
    op.create_index(
        "ix_appointments_instructor_created", "appointments", ["instructor_id", "created_at"]
    )
    # Database-level guarantee against double booking
    op.create_index(
        "uq_appointments_active_slot",
        "appointments",
        ["slot_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )

    print("Initial schema created successfully!")


def downgrade() -> None:
    print("Dropping initial schema...")

    op.drop_index("uq_appointments_active_slot", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("slots")
    op.drop_table("instructor_assets")
    op.drop_table("profiles")

    print("Initial schema dropped successfully!")
