"""Shared pytest fixtures for changeledger tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from changeledger.db.connection import Database
from changeledger.events.projector import ResultProjector
from changeledger.events.store import UpdateEventStore
from changeledger.importer.router import get_import_service
from changeledger.importer.service import ImportService
from changeledger.main import app
from changeledger.updates.engine import UpdateQueryEngine
from changeledger.updates.router import get_update_feed_service
from changeledger.updates.service import UpdateFeedService
from changeledger.updates.timerange import FixedClock, TimeRangeResolver
from tests.fixtures import NOW


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def update_store(db):
    """UpdateEventStore backed by in-memory database."""
    return UpdateEventStore(db)


@pytest.fixture
def clock():
    """Clock pinned at NOW. Tests may move it."""
    return FixedClock(NOW)


@pytest.fixture
def resolver(clock):
    return TimeRangeResolver(clock)


@pytest.fixture
async def projector(update_store):
    return ResultProjector(update_store)


@pytest.fixture
async def engine(update_store, projector):
    return UpdateQueryEngine(update_store, projector)


@pytest.fixture
async def feed_service(engine, resolver):
    return UpdateFeedService(engine, resolver)


@pytest.fixture
async def client(update_store, feed_service):
    """Async test client with in-memory DB and fixed clock wired into the app."""
    import_service = ImportService(update_store)
    app.dependency_overrides[get_update_feed_service] = lambda: feed_service
    app.dependency_overrides[get_import_service] = lambda: import_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
