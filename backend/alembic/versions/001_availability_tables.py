"""availability_slots, availability_daily_summary, profiles, booking_connections.

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("full_name", sa.String(256), nullable=True),
        sa.Column("calendar", sa.String(256), nullable=True),
        sa.Column("slot_length_minutes", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_table(
        "booking_connections",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("provider", sa.String(32), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("user_id", "provider"),
    )

    # Primary key is the slot identity; upserts conflict on it.
    op.create_table(
        "availability_slots",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("appointment_type_id", sa.String(128), nullable=False),
        sa.Column("calendar_id", sa.String(128), nullable=False),
        sa.Column("slot_date", sa.String(10), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("appointment_type_name", sa.String(256), nullable=True),
        sa.Column("start_at", sa.String(40), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint(
            "user_id", "source", "appointment_type_id", "calendar_id", "slot_date", "start_time"
        ),
    )
    op.create_index(
        "ix_availability_slots_user_source_date", "availability_slots", ["user_id", "source", "slot_date"]
    )
    op.create_index("ix_availability_slots_fetched_at", "availability_slots", ["fetched_at"])

    op.create_table(
        "availability_daily_summary",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("slot_date", sa.String(10), nullable=False),
        sa.Column("slot_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("slot_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("estimated_revenue", sa.Float(), nullable=False, server_default="0"),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "source", "slot_date"),
    )
    op.create_index(
        "ix_availability_daily_summary_fetched_at", "availability_daily_summary", ["fetched_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_availability_daily_summary_fetched_at", table_name="availability_daily_summary")
    op.drop_table("availability_daily_summary")
    op.drop_index("ix_availability_slots_fetched_at", table_name="availability_slots")
    op.drop_index("ix_availability_slots_user_source_date", table_name="availability_slots")
    op.drop_table("availability_slots")
    op.drop_table("booking_connections")
    op.drop_table("profiles")
