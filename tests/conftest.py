"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
import httpx
from typing import Any, Dict, List, Optional, Tuple
from core.config import Settings
from core.database import create_db_engine, create_session_factory, init_models
from cache.backends import MemoryCacheBackend
from cache.read_through import ReadThroughCache
from storage.store import DurableStore

# In-memory SQLite shared by every session of one engine (StaticPool)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


ISS_PAYLOAD = {
    "name": "iss",
    "id": 25544,
    "latitude": 50.11,
    "longitude": 8.68,
    "altitude": 420.5,
    "velocity": 27600.12,
    "timestamp": 1705312800
}

CATALOG_DOCUMENT = {
    "hits": {
        "hits": [
            {"_source": {"dataset_id": "OSD-1", "title": "Rodent Research 1", "status": "public",
                         "updated": "2024-01-15T10:00:00Z"}},
            {"_source": {"dataset_id": "OSD-2", "title": "Plant Habitat", "state": "draft"}},
            {"_source": {"name": "Unkeyed study"}}
        ]
    }
}


class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


class FakeUpstream:
    """
    httpx.MockTransport handler serving every configured source.

    ``payloads`` maps a source name to the JSON it returns. ``fail`` makes a
    source answer with an error status, forever or for the next ``times`` calls.
    """

    def __init__(self, settings: Settings):
        self.routes = {
            settings.WHERE_ISS_URL: "iss",
            settings.NASA_API_URL: "osdr",
            settings.APOD_URL: "apod",
            settings.NEO_URL: "neo",
            settings.DONKI_FLR_URL: "flr",
            settings.DONKI_CME_URL: "cme",
            settings.SPACEX_NEXT_URL: "spacex",
        }
        self.payloads: Dict[str, Any] = {
            "iss": dict(ISS_PAYLOAD),
            "osdr": CATALOG_DOCUMENT,
            "apod": {"title": "Pillars of Creation", "media_type": "image"},
            "neo": {"element_count": 12, "near_earth_objects": {}},
            "flr": [{"flrID": "2024-01-14T03:01:00-FLR-001", "classType": "M1.2"}],
            "cme": [{"activityID": "2024-01-13T12:00:00-CME-001"}],
            "spacex": {"name": "Starlink 7-1", "date_utc": "2024-01-20T00:00:00.000Z"},
        }
        self.failures: Dict[str, Tuple[int, Optional[int]]] = {}
        self.calls: List[httpx.Request] = []

    def fail(self, source: str, status: int = 503, times: Optional[int] = None):
        self.failures[source] = (status, times)

    def recover(self, source: str):
        self.failures.pop(source, None)

    def calls_to(self, source: str) -> int:
        return sum(1 for r in self.calls if self._source_of(r) == source)

    def _source_of(self, request: httpx.Request):
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        return self.routes.get(url)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        source = self._source_of(request)

        if source in self.failures:
            status, remaining = self.failures[source]
            if remaining is None or remaining > 0:
                if remaining is not None:
                    self.failures[source] = (status, remaining - 1)
                return httpx.Response(status, text="upstream unavailable")

        if source in self.payloads:
            return httpx.Response(200, json=self.payloads[source])
        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def settings_factory():
    """Build isolated settings: no .env, in-memory database and cache, no scheduler"""
    def make(**overrides) -> Settings:
        values = {
            "DATABASE_URL": TEST_DATABASE_URL,
            "CACHE_BACKEND": "memory",
            "SCHEDULER_ENABLED": False,
            "NASA_API_KEY": None,
            "JWST_API_KEY": None,
            "JWST_PROGRAM_ID": None,
            "JWST_EMAIL": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return make


@pytest.fixture
def test_settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_upstream(test_settings) -> FakeUpstream:
    return FakeUpstream(test_settings)


@pytest_asyncio.fixture(scope="function")
async def test_engine(test_settings):
    """Create test database engine with all tables"""
    engine = create_db_engine(test_settings)
    await init_models(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def store(session_factory) -> DurableStore:
    return DurableStore(session_factory)


@pytest.fixture
def memory_backend() -> MemoryCacheBackend:
    return MemoryCacheBackend()


@pytest.fixture
def cache(memory_backend) -> ReadThroughCache:
    return ReadThroughCache(memory_backend, default_ttl=120)
