"""
Tests for technical indicators (SMA, Wilder RSI) and the pandas calculator.
"""
import math

import pytest
import pandas as pd
import numpy as np

from metalwatch.indicators.technical import (
    TechnicalIndicators,
    IndicatorValues,
    rsi,
    rsi_series,
    sma,
)
from metalwatch.shared.errors import InvalidParameter
from metalwatch.shared.types import InsufficientData


@pytest.fixture
def sample_prices():
    """Create sample price data for testing."""
    rng = np.random.default_rng(7)
    dates = pd.date_range('2024-01-01', periods=100, freq='h', tz='UTC')
    # Create simple uptrend
    return pd.Series(80 + np.arange(100) * 0.05 + rng.normal(0, 0.4, 100), index=dates)


class TestSMA:
    """Test SMA calculation."""

    def test_known_values(self):
        result = sma([1, 2, 3, 4, 5], 3)

        assert result[:2] == [None, None]
        assert result[2:] == pytest.approx([2.0, 3.0, 4.0])

    def test_aligned_with_input(self, sample_prices):
        result = sma(sample_prices, 20)

        assert len(result) == len(sample_prices)
        assert all(v is None for v in result[:19])
        assert all(v is not None for v in result[19:])

    def test_each_value_is_window_mean(self, sample_prices):
        result = sma(sample_prices, 5)
        values = sample_prices.to_numpy()
        for i in range(4, len(values)):
            assert result[i] == pytest.approx(values[i - 4:i + 1].mean())

    def test_period_longer_than_input(self):
        assert sma([1.0, 2.0], 5) == [None, None]

    def test_empty_input(self):
        assert sma([], 3) == []

    def test_window_with_missing_price_is_absent(self):
        result = sma([1.0, float("nan"), 3.0, 4.0, 5.0], 2)
        assert result == [None, None, None, pytest.approx(3.5), pytest.approx(4.5)]

    @pytest.mark.parametrize("period", [0, -3, 2.5, True])
    def test_invalid_period(self, period):
        with pytest.raises(InvalidParameter):
            sma([1, 2, 3], period)


class TestRSI:
    """Test Wilder RSI calculation."""

    def test_only_gains_is_100(self):
        assert rsi(list(range(1, 16)), 14) == 100.0

    def test_only_losses_is_0(self):
        assert rsi(list(range(15, 0, -1)), 14) == pytest.approx(0.0)

    def test_insufficient_data(self):
        result = rsi(list(range(1, 15)), 14)

        assert isinstance(result, InsufficientData)
        assert result.required == 15
        assert result.available == 14

    def test_empty_input_does_not_raise(self):
        result = rsi([], 14)
        assert isinstance(result, InsufficientData)
        assert result.available == 0

    def test_flat_prices_do_not_raise(self):
        # No losses at all: defined as maximal strength
        assert rsi([50.0] * 20, 14) == 100.0

    def test_range(self, sample_prices):
        valid = [v for v in rsi_series(sample_prices) if v is not None]
        assert min(valid) >= 0
        assert max(valid) <= 100

    def test_wilder_smoothing(self):
        prices = [44.0, 44.5, 44.0, 45.0, 46.0]
        # period 2: seed averages over the first two diffs, then smooth
        gain, loss = (0.5 + 0.0) / 2, (0.0 + 0.5) / 2
        gain, loss = (gain * 1 + 1.0) / 2, (loss * 1 + 0.0) / 2
        gain, loss = (gain * 1 + 1.0) / 2, (loss * 1 + 0.0) / 2
        expected = 100 - 100 / (1 + gain / loss)

        assert rsi(prices, 2) == pytest.approx(expected)

    def test_series_last_matches_scalar(self, sample_prices):
        series = rsi_series(sample_prices, 14)

        assert series[:14] == [None] * 14
        assert series[-1] == pytest.approx(rsi(sample_prices, 14))

    def test_missing_prices_skipped(self):
        prices = [1.0, 2.0, float("nan"), 3.0, 4.0]
        series = rsi_series(prices, 2)

        assert series[2] is None
        assert series[3] == 100.0
        assert rsi(prices, 2) == 100.0

    def test_invalid_period(self):
        with pytest.raises(InvalidParameter):
            rsi([1, 2, 3], 0)


class TestTechnicalIndicators:
    """Test the pandas calculator."""

    def test_calculate_all_columns(self, sample_prices):
        df = TechnicalIndicators().calculate_all(sample_prices)

        for column in ["price", "sma_short", "sma_long", "sma_bullish", "rsi", "rsi_oversold", "rsi_overbought"]:
            assert column in df.columns
        assert len(df) == len(sample_prices)
        assert df["sma_long"].iloc[:49].isna().all()
        assert not math.isnan(df["sma_long"].iloc[49])

    def test_series_matches_functions(self, sample_prices):
        indicators = TechnicalIndicators(sma_short_period=5, rsi_period=7)

        assert indicators.calculate_sma(sample_prices, 5).iloc[-1] == pytest.approx(sma(sample_prices, 5)[-1])
        assert indicators.calculate_rsi(sample_prices).iloc[-1] == pytest.approx(rsi(sample_prices, 7))

    def test_rsi_period(self, sample_prices):
        """Different periods should give different results."""
        rsi7 = TechnicalIndicators(rsi_period=7).calculate_rsi(sample_prices)
        rsi14 = TechnicalIndicators(rsi_period=14).calculate_rsi(sample_prices)

        assert not rsi7.dropna().equals(rsi14.dropna())

    def test_get_indicators_at(self, sample_prices):
        values = TechnicalIndicators().get_indicators_at(sample_prices)

        assert isinstance(values, IndicatorValues)
        assert values.timestamp == sample_prices.index[-1]
        assert values.price == pytest.approx(sample_prices.iloc[-1])
        assert values.sma_long is not None
        assert values.rsi is not None

    def test_get_indicators_at_short_history(self):
        values = TechnicalIndicators().get_indicators_at(pd.Series([1.0, 2.0]))

        assert values.sma_short is None
        assert values.rsi is None
        assert values.sma_bullish is False

    def test_get_indicators_at_empty(self):
        assert TechnicalIndicators().get_indicators_at(pd.Series([], dtype=float)) is None
