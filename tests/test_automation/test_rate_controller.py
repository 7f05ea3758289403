"""
Tests for the READY/COOLDOWN refresh gate, driven by a simulated clock.
"""
import pytest

from metalwatch.automation.rate_controller import (
    QuotaState,
    RateController,
    RefreshState,
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(clock):
    return RateController("price_feed", interval_seconds=3600 / 7, quota=7, clock=clock)


class TestShouldRefresh:

    def test_never_requested_is_ready(self, controller):
        decision = controller.should_refresh()

        assert decision.state == RefreshState.READY
        assert decision.remaining_seconds == 0
        assert decision.ready

    def test_idempotent(self, controller, clock):
        controller.record_request()
        clock.advance(60)

        first = controller.should_refresh()
        second = controller.should_refresh()
        assert first == second
        assert controller.state.request_count == 1

    def test_cooldown_until_interval_elapsed(self, controller, clock):
        controller.record_request()

        decision = controller.should_refresh()
        assert decision.state == RefreshState.COOLDOWN
        assert decision.remaining_seconds == pytest.approx(3600 / 7)

        clock.advance(3600 / 7 - 1)
        assert controller.should_refresh().state == RefreshState.COOLDOWN
        assert controller.should_refresh().remaining_seconds == pytest.approx(1.0)

        clock.advance(1)
        assert controller.should_refresh().state == RefreshState.READY


    def test_ready_exactly_at_interval_boundary(self, controller, clock):
        controller.record_request()
        for _ in range(7):
            clock.advance(3600 / 49)

        decision = controller.should_refresh()
        assert decision.state == RefreshState.READY
        assert decision.remaining_seconds == 0
    def test_quota_exhaustion_blocks_until_window_ends(self, clock):
        controller = RateController("feed", interval_seconds=10, quota=3, window_seconds=3600, clock=clock)
        for _ in range(3):
            assert controller.should_refresh().ready
            controller.record_request()
            clock.advance(10)

        decision = controller.should_refresh()
        assert decision.state == RefreshState.COOLDOWN
        assert decision.request_count == 3
        assert decision.remaining_seconds == pytest.approx(3600 - 30)

        clock.advance(3600 - 30)
        assert controller.should_refresh().ready

    def test_unlimited_quota(self, clock):
        controller = RateController("feed", interval_seconds=1, clock=clock)
        for _ in range(50):
            controller.record_request()
            clock.advance(1)
        assert controller.should_refresh().ready


class TestWindow:

    def test_reset_window_keeps_last_request(self, controller, clock):
        controller.record_request()
        last = controller.state.last_request_ts
        clock.advance(30)

        controller.reset_window()

        assert controller.state.request_count == 0
        assert controller.state.last_request_ts == last
        assert controller.state.window_started_ts == clock.now
        # Interval still applies after a reset
        assert controller.should_refresh().state == RefreshState.COOLDOWN

    def test_window_due(self, controller, clock):
        assert not controller.window_due()

        controller.record_request()
        clock.advance(3599)
        assert not controller.window_due()
        clock.advance(1)
        assert controller.window_due()

    def test_record_request_restarts_expired_window(self, clock):
        controller = RateController("feed", interval_seconds=10, quota=3, window_seconds=3600, clock=clock)
        for _ in range(3):
            controller.record_request()
            clock.advance(10)
        assert not controller.should_refresh().ready

        clock.advance(3600)
        controller.record_request()

        assert controller.state.request_count == 1
        assert controller.state.window_started_ts == clock.now
        # The fresh window enforces the quota again
        for _ in range(2):
            clock.advance(10)
            controller.record_request()
        clock.advance(10)
        assert controller.should_refresh().state == RefreshState.COOLDOWN


class TestAdmit:

    def test_ready_admits(self, controller):
        assert controller.admit(has_cached=True)

    def test_cooldown_with_cache_refuses(self, controller):
        controller.record_request()
        assert controller.admit(has_cached=True) is False

    def test_cold_start_overrides_cooldown(self, controller):
        controller.record_request()
        assert controller.admit(has_cached=False) is True


class TestState:

    def test_restored_state(self, clock):
        state = QuotaState("price_feed", last_request_ts=clock.now - 100, request_count=2, window_started_ts=clock.now - 100)
        controller = RateController("price_feed", interval_seconds=3600 / 7, quota=7, clock=clock, state=state)

        decision = controller.should_refresh()
        assert decision.state == RefreshState.COOLDOWN
        assert decision.remaining_seconds == pytest.approx(3600 / 7 - 100)

    def test_on_change_called(self, clock):
        changes = []
        controller = RateController("feed", interval_seconds=5, clock=clock, on_change=changes.append)

        controller.record_request()
        controller.reset_window()

        assert len(changes) == 2
        assert changes[-1].request_count == 0

    def test_dict_round_trip(self):
        state = QuotaState("feed", last_request_ts=12.5, request_count=3, window_started_ts=10.0)
        assert QuotaState.from_dict(state.to_dict()) == state

    @pytest.mark.parametrize("kwargs", [
        {"interval_seconds": -1},
        {"interval_seconds": 1, "quota": 0},
        {"interval_seconds": 1, "window_seconds": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            RateController("feed", **kwargs)
