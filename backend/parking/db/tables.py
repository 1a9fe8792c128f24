"""
Single source of truth for database tables that exist after migrations (001).

Use these names when writing raw SQL. alembic/env.py asserts the registered models match.
"""
# All tables that exist in the DB. Must match models and migrations.
ALL_TABLE_NAMES = (
    "slots",
    "bookings",
    "rates",
    "street_slots",
)

# Tables that hold facility layout (seeded once by provisioning); bookings are append-only.
FACILITY_TABLE_NAMES = (
    "slots",
    "rates",
    "street_slots",
)
