#!/usr/bin/env python3
"""
Provision the facility: 51 building slots (3 floors x 17), the hourly rate row and street slots A1-B3.
Idempotent; run after migrations: cd backend && alembic upgrade head && python scripts/seed_facility.py
"""
import sys
from decimal import Decimal
from pathlib import Path

# backend/scripts/ -> backend/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import text

from parking.config import settings
from parking.db.tables import FACILITY_TABLE_NAMES
from parking.db.session import make_engine
from parking.services.provisioning import provision_database
from parking.services.storage.sql import SqlStore


def main():
    print("Connecting to DB and provisioning facility ...")
    store = SqlStore(make_engine(settings.database_url))
    inserted = provision_database(store, default_rate_per_hour=Decimal(str(settings.default_rate_per_hour)))
    print(f"Inserted: {inserted}")
    with store.engine.connect() as conn:
        for table in FACILITY_TABLE_NAMES:
            count = conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
            print(f"  {table}: {count} rows")
    counts = store.aggregate_counts()
    print(
        f"Slots: total={counts['total']} available={counts['available']} "
        f"booked={counts['booked']} occupied={counts['occupied']}"
    )
    print(f"Rate: {store.get_rate().rate_per_hour}/hour")


if __name__ == "__main__":
    main()
