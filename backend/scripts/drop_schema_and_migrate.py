#!/usr/bin/env python3
"""
Drop the public schema, run all migrations from scratch and provision the facility.
Development only: bookings are lost. PostgreSQL only (DROP SCHEMA).

Run from backend dir:
  python scripts/drop_schema_and_migrate.py
"""
import subprocess
import sys
from decimal import Decimal
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import text

from parking.config import settings
from parking.db.session import make_engine
from parking.services.provisioning import provision_database
from parking.services.storage.sql import SqlStore


def main():
    engine = make_engine(settings.database_url)
    print("Dropping public schema (all tables)...")
    with engine.connect() as conn:
        conn.execute(text("DROP SCHEMA IF EXISTS public CASCADE"))
        conn.execute(text("CREATE SCHEMA public"))
        conn.execute(text("GRANT ALL ON SCHEMA public TO public"))
        conn.commit()
    print("Schema recreated. Running migrations...")
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=backend_dir,
    )
    if result.returncode != 0:
        sys.exit(result.returncode)
    inserted = provision_database(SqlStore(engine), default_rate_per_hour=Decimal(str(settings.default_rate_per_hour)))
    print(f"Done. All tables created; provisioned {inserted}.")


if __name__ == "__main__":
    main()
