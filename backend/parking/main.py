"""
FastAPI app entrypoint.

Building parking (bookings, checkout, rate), street parking (sensor reports) and the live
WebSocket channel. Storage backend is chosen once at startup (see services.storage.factory).
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from parking.api.routes import bookings, live, rates, street
from parking.config import settings
from parking.services.notifier import ChangeNotifier
from parking.services.storage import build_store
from parking.services.storage.base import ParkingStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests (and embedders) may pre-set app.state.store; otherwise build from settings
    store = getattr(app.state, "store", None) or build_store(settings)
    app.state.store = store
    app.state.notifier = ChangeNotifier(store)
    logger.info("Parking backend ready (storage: %s)", store.name)
    yield
    logger.info("Parking backend shutting down (%s live observers)", app.state.notifier.observer_count)


def create_app(store: ParkingStore | None = None) -> FastAPI:
    app = FastAPI(title="Parking Booking", version="0.1.0", lifespan=lifespan)
    if store is not None:
        app.state.store = store

    # CORS: dev origins + optional CORS_ORIGINS (comma-separated) for the production frontend
    cors_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    cors_extra = settings.cors_origins or os.getenv("CORS_ORIGINS", "")
    if cors_extra:
        cors_origins.extend(o.strip() for o in cors_extra.split(",") if o.strip())
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(bookings.router, prefix="/api", tags=["bookings"])
    app.include_router(rates.router, prefix="/api", tags=["rates"])
    app.include_router(street.router, tags=["street"])
    app.include_router(live.router, tags=["live"])

    @app.get("/", include_in_schema=False)
    def root():
        return {"message": "Parking API", "docs": "/docs", "health": "/health", "live": "/ws"}

    @app.get("/health")
    def health() -> dict:
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "storage_mode": app.state.store.name,
            "connected_clients": app.state.notifier.observer_count,
        }

    return app


app = create_app()
