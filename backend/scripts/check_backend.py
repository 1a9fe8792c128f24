#!/usr/bin/env python3
"""
Pre-flight for the parking backend. Run from backend/:
  python scripts/check_backend.py

Reports which storage the app will use (database or in-memory fallback), whether
migrations have been applied and the facility provisioned.
"""
import os
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import inspect

from parking.config import settings
from parking.core.constants import FACILITY_FLOORS, SLOTS_PER_FLOOR
from parking.db.session import make_engine
from parking.db.tables import ALL_TABLE_NAMES
from parking.services.storage.sql import SqlStore


def check_database(errors: list[str]) -> None:
    try:
        store = SqlStore(make_engine(settings.database_url))
        store.ping()
    except Exception as e:
        if settings.storage_backend == "database":
            errors.append(f"Database unreachable and STORAGE_BACKEND=database: {e}")
            print("FAIL Database:", e)
        else:
            print(f"WARN Database unreachable ({e}); STORAGE_BACKEND={settings.storage_backend} will use memory")
        return
    print("OK  Database connection (DATABASE_URL)")

    missing = sorted(set(ALL_TABLE_NAMES) - set(inspect(store.engine).get_table_names()))
    if missing:
        errors.append(f"Missing tables {missing}. Run: alembic upgrade head")
        print("FAIL Schema: missing", ", ".join(missing))
        return
    print("OK  Schema (slots, bookings, rates, street_slots)")

    expected = len(FACILITY_FLOORS) * SLOTS_PER_FLOOR
    counts = store.aggregate_counts()
    if counts["total"] < expected:
        print(f"WARN {counts['total']}/{expected} slots provisioned; run scripts/seed_facility.py or enable SEED_ON_STARTUP")
    else:
        print(
            f"OK  Facility: {counts['total']} slots "
            f"({counts['available']} available, {counts['booked']} booked, {counts['occupied']} occupied)"
        )
    rate = store.get_rate()
    print(f"OK  Rate: {rate.rate_per_hour}/hour" if rate else f"WARN No rate row; default {settings.default_rate_per_hour}/hour applies")


def main():
    errors: list[str] = []

    if not (backend_dir / ".env").exists():
        print("WARN backend/.env missing; using defaults and environment variables")

    print(f"--  Storage backend: {settings.storage_backend}")
    check_database(errors)

    try:
        from parking.main import app  # noqa: F401
        print("OK  App import (parking.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)

    try:
        import socket
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 8000))
        print("OK  Port 8000 is free")
    except OSError:
        errors.append("Port 8000 is in use. Stop the other process or use another port (e.g. --port 8001).")
        print("FAIL Port 8000 is in use")

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        return 1

    print("\nAll checks passed. Start with: uvicorn parking.main:app --reload --host 0.0.0.0 --port 8000")
    return 0


if __name__ == "__main__":
    sys.exit(main())
