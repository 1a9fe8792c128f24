"""Request-scoped access to the store and notifier built in main.lifespan."""
from starlette.requests import HTTPConnection

from parking.services.notifier import ChangeNotifier
from parking.services.storage.base import ParkingStore


def get_store(conn: HTTPConnection) -> ParkingStore:
    return conn.app.state.store


def get_notifier(conn: HTTPConnection) -> ChangeNotifier:
    return conn.app.state.notifier
