"""Parking schema: slots, bookings, rates, street_slots.

- slots: building layout + status (available | booked | occupied).
- bookings: append-only; at most one pending/active booking per slot (partial unique index).
- rates: single global hourly rate (lowest-id active row is current).
- street_slots: sensor-reported occupancy.

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

_OPEN_BOOKING_WHERE = sa.text("payment_status IN ('pending', 'active')")


def upgrade() -> None:
    op.create_table(
        "slots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slot_number", sa.String(10), nullable=False),
        sa.Column("floor_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="available"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slot_number"),
    )
    op.create_index("ix_slots_floor_number", "slots", ["floor_number"], unique=False)
    op.create_index("ix_slots_status", "slots", ["status"], unique=False)
    op.create_index("ix_slots_floor_status", "slots", ["floor_number", "status"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slot_id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("vehicle_number", sa.String(20), nullable=False),
        sa.Column("phone_number", sa.String(15), nullable=False),
        sa.Column("booking_type", sa.String(16), nullable=False),
        sa.Column("booking_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("arrival_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_status", sa.String(16), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["slot_id"], ["slots.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bookings_slot_id", "bookings", ["slot_id"], unique=False)
    op.create_index("ix_bookings_payment_status", "bookings", ["payment_status"], unique=False)
    op.create_index(
        "uq_bookings_open_slot",
        "bookings",
        ["slot_id"],
        unique=True,
        postgresql_where=_OPEN_BOOKING_WHERE,
        sqlite_where=_OPEN_BOOKING_WHERE,
    )

    op.create_table(
        "rates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("rate_per_hour", sa.Numeric(10, 2), nullable=False, server_default="50.00"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("effective_from", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rates_is_active", "rates", ["is_active"], unique=False)

    op.create_table(
        "street_slots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slot_number", sa.String(10), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="available"),
        sa.Column("occupied", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slot_number"),
    )


def downgrade() -> None:
    op.drop_table("street_slots")
    op.drop_index("ix_rates_is_active", table_name="rates")
    op.drop_table("rates")
    op.drop_index("uq_bookings_open_slot", table_name="bookings")
    op.drop_index("ix_bookings_payment_status", table_name="bookings")
    op.drop_index("ix_bookings_slot_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_slots_floor_status", table_name="slots")
    op.drop_index("ix_slots_status", table_name="slots")
    op.drop_index("ix_slots_floor_number", table_name="slots")
    op.drop_table("slots")
