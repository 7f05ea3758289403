"""Tests for price feeds (gold-api.com adapter, simulated feed, seeding)."""
import json
import urllib.error
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from metalwatch.feeds.base import Quote
from metalwatch.feeds.gold_api import GoldApiFeed
from metalwatch.feeds.simulated import SimulatedFeed, generate_initial_history, reference_price
from metalwatch.history.store import HistoryStore
from metalwatch.shared.errors import ExternalResourceUnavailable
from metalwatch.shared.types import Instrument, Tick


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def fake_response(payload):
    response = MagicMock()
    response.read.return_value = json.dumps(payload).encode("utf-8")
    response.__enter__.return_value = response
    return response


class TestGoldApiFeed:

    def test_converts_troy_ounce_to_gram(self):
        payload = {"name": "Gold", "price": 2488.0, "symbol": "XAU", "updatedAt": "2024-06-01T11:59:30Z"}
        with patch("metalwatch.feeds.gold_api.urllib.request.urlopen", return_value=fake_response(payload)) as m:
            quote = GoldApiFeed().fetch(Instrument.GOLD)

        assert m.call_args[0][0].full_url == "https://api.gold-api.com/price/XAU"
        assert quote.price == pytest.approx(2488.0 / 31.1035)
        assert quote.timestamp == datetime(2024, 6, 1, 11, 59, 30, tzinfo=timezone.utc)
        assert quote.source == "gold-api.com"

    def test_missing_updated_at_uses_now(self):
        with patch("metalwatch.feeds.gold_api.urllib.request.urlopen", return_value=fake_response({"price": 31.1035})):
            quote = GoldApiFeed().fetch(Instrument.SILVER)

        assert quote.price == pytest.approx(1.0)
        assert quote.timestamp.tzinfo is not None

    def test_network_error_raises_unavailable(self):
        with patch(
            "metalwatch.feeds.gold_api.urllib.request.urlopen",
            side_effect=urllib.error.URLError("unreachable"),
        ):
            with pytest.raises(ExternalResourceUnavailable) as exc_info:
                GoldApiFeed().fetch(Instrument.GOLD)
        assert exc_info.value.resource == "gold-api.com"

    @pytest.mark.parametrize("payload", [{}, {"price": "n/a"}, {"price": 0}, {"price": -5}])
    def test_bad_payload_raises_unavailable(self, payload):
        with patch("metalwatch.feeds.gold_api.urllib.request.urlopen", return_value=fake_response(payload)):
            with pytest.raises(ExternalResourceUnavailable):
                GoldApiFeed().fetch(Instrument.GOLD)


class TestQuote:

    def test_dict_round_trip(self):
        quote = Quote(Instrument.GOLD, 85.5, NOW, high_price=86.0, source="test")
        assert Quote.from_dict(json.loads(json.dumps(quote.to_dict()))) == quote

    def test_to_tick(self):
        tick = Quote(Instrument.SILVER, 0.95, NOW, change_pct=0.4).to_tick()

        assert tick == Tick(Instrument.SILVER, 0.95, NOW, change_pct=0.4)


class TestSimulatedFeed:

    def test_stays_within_variation(self):
        feed = SimulatedFeed(seed=1, clock=lambda: NOW)
        previous = reference_price(Instrument.GOLD)
        for _ in range(50):
            quote = feed.fetch(Instrument.GOLD)
            assert abs(quote.price / previous - 1) <= 0.015 + 1e-12
            previous = quote.price

    def test_seeded_feed_is_reproducible(self):
        first = SimulatedFeed(seed=3).fetch(Instrument.SILVER).price
        second = SimulatedFeed(seed=3).fetch(Instrument.SILVER).price
        assert first == second

    def test_walks_from_stored_price(self):
        store = HistoryStore()
        store.append(Tick(Instrument.GOLD, 100.0, NOW))

        quote = SimulatedFeed(store=store, seed=5).fetch(Instrument.GOLD)
        assert 98.5 <= quote.price <= 101.5


class TestGenerateInitialHistory:

    def test_seeds_empty_store(self):
        store = HistoryStore(clock=lambda: NOW)
        added = generate_initial_history(store, [Instrument.GOLD, Instrument.SILVER], days=30, seed=1, now=NOW)

        assert added == 60
        gold = list(store.query(Instrument.GOLD))
        assert len(gold) == 30
        assert gold[-1].timestamp == NOW
        assert (gold[-1].timestamp - gold[0].timestamp).days == 29

    def test_leaves_existing_history_alone(self):
        store = HistoryStore()
        store.append(Tick(Instrument.GOLD, 80.0, NOW))

        assert generate_initial_history(store, seed=1) == 0
        assert len(store) == 1
