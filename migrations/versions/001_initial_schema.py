"""Initial schema: therapists, session_types, therapist_availability, blocked_dates, bookings.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "therapists",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False, server_default=""),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("bio", sa.String(), nullable=False, server_default=""),
        sa.Column("default_session_duration", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("buffer_time", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("advance_booking_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("min_booking_notice", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_therapists_slug"), "therapists", ["slug"], unique=True)
    op.create_index(op.f("ix_therapists_user_id"), "therapists", ["user_id"], unique=False)

    op.create_table(
        "session_types",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("therapist_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("meeting_type", sa.String(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("color", sa.String(), nullable=False, server_default="#00A99D"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["therapist_id"], ["therapists.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_session_types_therapist_id"), "session_types", ["therapist_id"], unique=False)

    op.create_table(
        "therapist_availability",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("therapist_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["therapist_id"], ["therapists.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        sa.CheckConstraint("start_time < end_time", name="ck_availability_window"),
    )
    op.create_index(
        op.f("ix_therapist_availability_therapist_id"), "therapist_availability", ["therapist_id"], unique=False
    )
    op.create_index(
        op.f("ix_therapist_availability_day_of_week"), "therapist_availability", ["day_of_week"], unique=False
    )

    op.create_table(
        "blocked_dates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("therapist_id", sa.Integer(), nullable=False),
        sa.Column("start_datetime", sa.DateTime(), nullable=False),
        sa.Column("end_datetime", sa.DateTime(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("is_all_day", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["therapist_id"], ["therapists.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_blocked_dates_therapist_id"), "blocked_dates", ["therapist_id"], unique=False)
    op.create_index(op.f("ix_blocked_dates_start_datetime"), "blocked_dates", ["start_datetime"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("booking_reference", sa.String(length=50), nullable=False),
        sa.Column("therapist_id", sa.Integer(), nullable=False),
        sa.Column("session_type_id", sa.Integer(), nullable=True),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.Column("client_name", sa.String(), nullable=False),
        sa.Column("client_email", sa.String(), nullable=False),
        sa.Column("client_phone", sa.String(), nullable=True),
        sa.Column("start_datetime", sa.DateTime(), nullable=False),
        sa.Column("end_datetime", sa.DateTime(), nullable=False),
        sa.Column("timezone", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="confirmed"),
        sa.Column("meeting_type", sa.String(), nullable=False),
        sa.Column("meeting_location", sa.String(), nullable=True),
        sa.Column("client_notes", sa.String(), nullable=True),
        sa.Column("cancellation_reason", sa.String(), nullable=True),
        sa.Column("cancelled_by", sa.Integer(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["therapist_id"], ["therapists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["session_type_id"], ["session_types.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bookings_booking_reference"), "bookings", ["booking_reference"], unique=True)
    op.create_index(op.f("ix_bookings_therapist_id"), "bookings", ["therapist_id"], unique=False)
    op.create_index(op.f("ix_bookings_start_datetime"), "bookings", ["start_datetime"], unique=False)
    op.create_index(op.f("ix_bookings_status"), "bookings", ["status"], unique=False)
    # At most one confirmed booking per therapist and start instant
    op.create_index(
        "uq_bookings_therapist_start_confirmed",
        "bookings",
        ["therapist_id", "start_datetime"],
        unique=True,
        postgresql_where=sa.text("status = 'confirmed'"),
        sqlite_where=sa.text("status = 'confirmed'"),
    )


def downgrade() -> None:
    op.drop_index("uq_bookings_therapist_start_confirmed", table_name="bookings")
    op.drop_index(op.f("ix_bookings_status"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_start_datetime"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_therapist_id"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_booking_reference"), table_name="bookings")
    op.drop_table("bookings")
    op.drop_index(op.f("ix_blocked_dates_start_datetime"), table_name="blocked_dates")
    op.drop_index(op.f("ix_blocked_dates_therapist_id"), table_name="blocked_dates")
    op.drop_table("blocked_dates")
    op.drop_index(op.f("ix_therapist_availability_day_of_week"), table_name="therapist_availability")
    op.drop_index(op.f("ix_therapist_availability_therapist_id"), table_name="therapist_availability")
    op.drop_table("therapist_availability")
    op.drop_index(op.f("ix_session_types_therapist_id"), table_name="session_types")
    op.drop_table("session_types")
    op.drop_index(op.f("ix_therapists_user_id"), table_name="therapists")
    op.drop_index(op.f("ix_therapists_slug"), table_name="therapists")
    op.drop_table("therapists")
