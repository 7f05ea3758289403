"""
Tests for rule-based summaries (assessments, window stats, market overview).
"""
from datetime import datetime, timedelta, timezone

import pytest

from metalwatch.history.store import HistoryStore
from metalwatch.indicators.summary import (
    Direction,
    Momentum,
    TechnicalAssessment,
    Trend,
    analyze_period,
    assess_technicals,
    classify_rsi,
    is_near_high,
    market_stats,
    market_trend_label,
    period_change,
    summarize_windows,
    volatility_label,
)
from metalwatch.shared.types import Instrument, InsufficientData, Tick


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestAssessment:

    def test_bullish_overbought(self):
        assessment = assess_technicals(sma_short=101.0, sma_long=100.0, rsi_value=75.0)

        assert assessment.trend == Trend.BULLISH
        assert assessment.momentum == Momentum.OVERBOUGHT
        assert assessment.describe() == (
            "Short-term trend is bullish (SMA 20 > 50). RSI indicates overbought conditions."
        )

    def test_bearish_oversold(self):
        assessment = assess_technicals(sma_short=99.0, sma_long=100.0, rsi_value=25.0)

        assert assessment.trend == Trend.BEARISH
        assert assessment.momentum == Momentum.OVERSOLD

    def test_unknown_values(self):
        assessment = assess_technicals(None, 100.0, InsufficientData(15, 3))

        assert assessment.trend is None
        assert assessment.momentum is None
        assert assessment.describe() == "Analysis in progress..."

    def test_equal_smas_give_no_trend(self):
        assert assess_technicals(100.0, 100.0, 50.0).trend is None

    def test_thresholds_are_exclusive(self):
        assert classify_rsi(70.0) == Momentum.NEUTRAL
        assert classify_rsi(30.0) == Momentum.NEUTRAL
        assert classify_rsi(70.01) == Momentum.OVERBOUGHT

    def test_neutral_description(self):
        assert TechnicalAssessment(momentum=Momentum.NEUTRAL).describe() == "RSI shows neutral momentum."


class TestPeriodStats:

    def test_rising_window(self):
        stats = analyze_period([100.0, 101.0, 102.0], "Last Hour")

        assert stats.label == "Last Hour"
        assert stats.low == 100.0
        assert stats.high == 102.0
        assert stats.change_pct == pytest.approx(2.0)
        assert stats.direction == Direction.UP
        assert stats.points == 3

    def test_flat_window(self):
        stats = analyze_period([100.0, 100.2, 100.4])
        assert stats.direction == Direction.FLAT
        assert stats.describe() == "Stable trading with minimal movement."

    def test_falling_description(self):
        stats = analyze_period([100.0, 99.5, 98.0])
        assert stats.direction == Direction.DOWN
        assert stats.describe().startswith("Downward pressure")

    def test_empty_window(self):
        assert analyze_period([]) is None

    def test_summarize_windows(self):
        store = HistoryStore(clock=lambda: NOW)
        store.append(Tick(Instrument.GOLD, 100.0, NOW - timedelta(days=3)))
        store.append(Tick(Instrument.GOLD, 101.0, NOW - timedelta(minutes=30)))
        store.append(Tick(Instrument.GOLD, 102.0, NOW - timedelta(minutes=10)))

        stats = summarize_windows(store, Instrument.GOLD)
        by_label = {s.label: s for s in stats}

        assert by_label["Last Hour"].points == 2
        assert by_label["Last 7 Days"].points == 3
        assert summarize_windows(store, Instrument.SILVER) == []


class TestMarketOverview:

    def test_period_change(self):
        prices = [100.0, 100.0, 110.0, 100.0, 100.0, 100.0, 100.0, 120.0]
        assert period_change(prices, 7) == pytest.approx(20.0)

    def test_period_change_needs_more_than_lookback(self):
        assert period_change([1.0] * 7, 7) is None

    def test_volatility_labels(self):
        assert volatility_label(1.0) == "Low"
        assert volatility_label(2.0) == "Medium"
        assert volatility_label(5.0) == "High"

    def test_market_stats(self):
        stats = market_stats(
            gold_price=85.0,
            silver_price=1.0,
            gold_recent=[100.0, 104.0],
            silver_recent=[10.0, 10.1],
            gold_change_pct=1.2,
            silver_change_pct=0.4,
        )

        assert stats.gold_silver_ratio == pytest.approx(85.0)
        assert stats.volatility_pct == pytest.approx(2.5)
        assert stats.volatility == "Medium"
        assert stats.trend_pct == pytest.approx(0.8)
        assert stats.trend == "Bullish"
        assert "ratio 85.00" in stats.describe()

    def test_market_stats_without_change_is_stable(self):
        stats = market_stats(85.0, 1.0, [100.0], [10.0])

        assert stats.volatility_pct == 0.0
        assert stats.volatility == "Low"
        assert stats.trend == "Stable"

    @pytest.mark.parametrize("change_pct, label", [
        (0.6, "Bullish"),
        (0.5, "Stable"),
        (-0.5, "Stable"),
        (-0.6, "Bearish"),
    ])
    def test_market_trend_label(self, change_pct, label):
        assert market_trend_label(change_pct) == label

    def test_near_high(self):
        assert is_near_high(99.0, 100.0)
        assert not is_near_high(97.0, 100.0)
        assert is_near_high(50.0, None)
