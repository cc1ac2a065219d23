import pytest

from trawler.core.frontier import FrontierConfig, UrlFrontier
from trawler.core.host_registry import HostRegistry, HostRegistryConfig
from trawler.storage import (
    Database,
    SQLiteHostStore,
    SQLitePageStore,
    SQLiteStructuredDataStore,
    StorageConfig,
)


class FakeClock:
    """Manual clock; sleeping advances it instead of blocking."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def database(tmp_path):
    db = Database(StorageConfig(database_path=str(tmp_path / "trawler.db")))
    yield db
    db.close()


@pytest.fixture
def host_store(database):
    return SQLiteHostStore(database)


@pytest.fixture
def page_store(database):
    return SQLitePageStore(database)


@pytest.fixture
def data_store(database):
    return SQLiteStructuredDataStore(database)


@pytest.fixture
def make_registry(host_store, clock):
    def factory(**overrides):
        config = HostRegistryConfig(**{"crawl_delay_seconds": 0.0, **overrides})
        return HostRegistry(host_store, config, clock=clock)
    return factory


@pytest.fixture
def make_frontier(page_store, make_registry, clock):
    """Build a frontier with its own registry, as a separate process would."""
    def factory(registry_config=None, **overrides):
        registry = make_registry(**(registry_config or {}))
        config = FrontierConfig(**{"crawl_delay_seconds": 0.0, **overrides})
        return UrlFrontier(page_store, registry, config, clock=clock, sleep=clock.sleep)
    return factory
