"""changeledger FastAPI application entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from changeledger.db.connection import Database
from changeledger.events.projector import ResultProjector
from changeledger.events.store import UpdateEventStore
from changeledger.importer.router import get_import_service
from changeledger.importer.router import router as import_router
from changeledger.importer.service import ImportService
from changeledger.updates.engine import UpdateQueryEngine
from changeledger.updates.router import get_update_feed_service
from changeledger.updates.router import router as updates_router
from changeledger.updates.service import UpdateFeedService
from changeledger.updates.timerange import SystemClock, TimeRangeResolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")

    logging.getLogger("changeledger").setLevel(
        os.environ.get("CHANGELEDGER_LOG_LEVEL", "INFO").upper()
    )

    db_path = os.environ.get("CHANGELEDGER_DB_PATH", "changeledger.db")
    db = await Database.connect(db_path)
    logger.info("Update store opened at %s", db_path)

    store = UpdateEventStore(db)

    # Update feed
    engine = UpdateQueryEngine(store, ResultProjector(store))
    feed_service = UpdateFeedService(engine, TimeRangeResolver(SystemClock()))
    app.dependency_overrides[get_update_feed_service] = lambda: feed_service

    # Import
    import_service = ImportService(store)
    app.dependency_overrides[get_import_service] = lambda: import_service

    app.state.db = db
    yield

    await db.close()


app = FastAPI(
    title="changeledger",
    description="Time-windowed queries over the update ledger of versioned entities",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(import_router)
app.include_router(updates_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": "0.1.0"}
