from parking.db.base import Base
from parking.db.session import make_engine, make_session_factory
from parking.db.tables import ALL_TABLE_NAMES, FACILITY_TABLE_NAMES

__all__ = ["make_engine", "make_session_factory", "Base", "ALL_TABLE_NAMES", "FACILITY_TABLE_NAMES"]
