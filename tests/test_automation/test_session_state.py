"""
Tests for session state: persisted quota states and cached results.
"""
import pytest

from metalwatch.automation.rate_controller import QuotaState, RefreshState
from metalwatch.automation.state import CACHE_VERSION_KEY, SessionState
from metalwatch.history.persistence import JsonFileStore, MemoryStore
from metalwatch.shared.errors import ExternalResourceUnavailable


class FakeClock:
    def __init__(self, now: float = 5_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryStore()


class TestQuotaPersistence:

    def test_controller_state_survives_restart(self, backend, clock):
        session = SessionState(backend, clock=clock).init()
        session.controller("price_feed", interval_seconds=600, quota=7).record_request()

        restarted = SessionState(backend, clock=clock).init()
        controller = restarted.controller("price_feed", interval_seconds=600, quota=7)

        assert controller.state.request_count == 1
        assert controller.state.last_request_ts == clock.now
        assert controller.should_refresh().state == RefreshState.COOLDOWN

    def test_unknown_resource_is_fresh(self, backend, clock):
        session = SessionState(backend, clock=clock).init()
        assert session.quota("commentary_feed") == QuotaState("commentary_feed")

    def test_malformed_quota_dropped(self, backend, clock):
        backend.set("quota_price_feed", {"last_request_ts": 3})  # no resource
        session = SessionState(backend, clock=clock).init()

        assert session.quotas == {}
        assert backend.get("quota_price_feed") is None

    def test_reset(self, backend, clock):
        session = SessionState(backend, clock=clock).init()
        session.controller("price_feed", interval_seconds=600).record_request()
        session.set_cached("XAU", {"price": 1.0})

        session.reset()

        assert session.quotas == {}
        assert session.get_cached("XAU") is None
        assert not [k for k in backend.keys() if k.startswith("quota_")]


class TestCache:

    def test_set_and_get(self, backend, clock):
        session = SessionState(backend, clock=clock).init()
        session.set_cached("XAU", {"price": 85.0})
        clock.now += 120

        assert session.get_cached("XAU") == {"price": 85.0}
        assert session.cached_age("XAU") == pytest.approx(120)

    def test_missing_key(self, backend, clock):
        session = SessionState(backend, clock=clock).init()

        assert session.get_cached("XAG") is None
        assert session.cached_age("XAG") is None

    def test_version_change_drops_cache(self, backend, clock):
        SessionState(backend, clock=clock).init(cache_version="2.0").set_cached("XAU", {"price": 1.0})

        same = SessionState(backend, clock=clock).init(cache_version="2.0")
        assert same.get_cached("XAU") == {"price": 1.0}

        bumped = SessionState(backend, clock=clock).init(cache_version="2.1")
        assert bumped.get_cached("XAU") is None
        assert backend.get(CACHE_VERSION_KEY) == "2.1"

    def test_version_change_keeps_quota(self, backend, clock):
        session = SessionState(backend, clock=clock).init(cache_version="2.0")
        session.controller("price_feed", interval_seconds=600).record_request()

        bumped = SessionState(backend, clock=clock).init(cache_version="2.1")
        assert bumped.quota("price_feed").request_count == 1

    def test_file_backend(self, tmp_path, clock):
        path = tmp_path / "state.json"
        SessionState(JsonFileStore(path), clock=clock).init().set_cached("XAU", {"price": 2.0})

        assert SessionState(JsonFileStore(path), clock=clock).init().get_cached("XAU") == {"price": 2.0}


class FailingWritesStore(MemoryStore):
    """MemoryStore whose writes fail, like a full disk behind JsonFileStore."""

    def set(self, key, value):
        raise ExternalResourceUnavailable("storage", "disk full")


class TestWriteFailures:

    def test_quota_kept_in_memory(self, clock):
        session = SessionState(FailingWritesStore(), clock=clock).init()
        controller = session.controller("price_feed", interval_seconds=600, quota=7)

        controller.record_request()

        assert session.quota("price_feed").request_count == 1
        assert controller.should_refresh().state == RefreshState.COOLDOWN

    def test_cache_kept_in_memory(self, clock):
        session = SessionState(FailingWritesStore(), clock=clock).init()
        session.set_cached("XAU", {"price": 85.0})
        clock.now += 30

        assert session.get_cached("XAU") == {"price": 85.0}
        assert session.cached_age("XAU") == pytest.approx(30)
