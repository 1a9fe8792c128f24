"""
Alembic environment for the parking schema.

DATABASE_URL comes from parking.config.settings. Only the tables listed in
parking.db.tables.ALL_TABLE_NAMES are compared during autogenerate; SQLite runs
in batch mode so ALTERs work on a local database file.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from parking.config import settings
from parking.db.base import Base
from parking.db.tables import ALL_TABLE_NAMES
from parking.models import Booking, Rate, Slot, StreetSlot  # noqa: F401

_registered = set(Base.metadata.tables)
assert _registered == set(ALL_TABLE_NAMES), (
    f"Model tables {sorted(_registered)} must match parking.db.tables.ALL_TABLE_NAMES {sorted(ALL_TABLE_NAMES)}."
)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
config.set_main_option("sqlalchemy.url", settings.database_url)

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):
    if type_ == "table":
        return name in ALL_TABLE_NAMES
    return True


def _configure(**kwargs) -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
