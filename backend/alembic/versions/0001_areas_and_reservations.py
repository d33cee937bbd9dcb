"""Create areas and reservations tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_ACTIVE = "status IN ('pending', 'paid')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"

    op.create_table(
        "areas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500)),
        sa.Column("min_capacity", sa.Integer(), nullable=False),
        sa.Column("max_capacity", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("min_capacity >= 1", name="ck_areas_min_capacity"),
        sa.CheckConstraint(
            "min_capacity <= max_capacity", name="ck_areas_capacity_bounds"
        ),
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "area_id",
            sa.Integer(),
            sa.ForeignKey("areas.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("guest_count", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("billed_base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("billed_increment_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=16), nullable=False),
        sa.Column("notes", sa.String(length=500)),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("start_at < end_at", name="ck_reservations_time_range"),
        sa.CheckConstraint("guest_count >= 1", name="ck_reservations_guest_count"),
        sa.CheckConstraint(
            "status IN ('pending', 'paid', 'cancelled', 'expired')",
            name="ck_reservations_status",
        ),
    )
    op.create_index(
        "ix_reservations_area_start_active",
        "reservations",
        ["area_id", "start_at"],
        postgresql_where=sa.text(_ACTIVE),
        sqlite_where=sa.text(_ACTIVE),
    )
    op.create_index(
        "ix_reservations_user_start", "reservations", ["user_id", "start_at"]
    )
    op.create_index(
        "ix_reservations_status_start", "reservations", ["status", "start_at"]
    )

    if is_postgres:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            f"""
            ALTER TABLE reservations
            ADD CONSTRAINT ex_reservations_area_active_overlap
            EXCLUDE USING gist (
                area_id WITH =,
                tstzrange(start_at, end_at, '[)') WITH &&
            ) WHERE ({_ACTIVE})
            """
        )


def downgrade() -> None:
    op.drop_index("ix_reservations_status_start", table_name="reservations")
    op.drop_index("ix_reservations_user_start", table_name="reservations")
    op.drop_index("ix_reservations_area_start_active", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("areas")
