from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from cost_manager.core.config import Settings
from cost_manager.db.dal import open_database
from cost_manager.main import create_app
from cost_manager.services.rates.base import Fetched, RateProvider


class FixedClock:
    """Clock returning a settable instant, so tests control month/year."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class StubProvider(RateProvider):
    def __init__(self, resolution):
        self.resolution = resolution
        self.calls = 0

    def resolve(self):
        self.calls += 1
        return self.resolution


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 15, 12, 30, tzinfo=timezone.utc))


@pytest.fixture
def db(tmp_path, clock):
    return open_database(tmp_path / "costsdb.sqlite3", 1, clock=clock)


@pytest.fixture
def fetched_provider():
    def _make(rates):
        return StubProvider(Fetched(rates=rates, url="http://rates.test/latest"))

    return _make


@pytest.fixture
def settings(tmp_path):
    s = Settings(data_dir=tmp_path, exchange_rates_url=None, debug=False)
    s.init_post_load()
    return s


@pytest.fixture
def client(settings, clock):
    db = open_database(settings.db_path, settings.schema_version, clock=clock)
    app = create_app(settings_override=settings, db=db)
    with TestClient(app) as c:
        yield c
