"""
Technical indicators for price analysis.

Provides SMA and Wilder RSI as pure functions over an ordered price
sequence (list, numpy array or pandas Series), plus a pandas-oriented
TechnicalIndicators calculator for chart series.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..shared.defaults import (
    SMA_SHORT_PERIOD, SMA_LONG_PERIOD,
    RSI_PERIOD, RSI_OVERSOLD, RSI_OVERBOUGHT,
)
from ..shared.errors import InvalidParameter
from ..shared.types import InsufficientData


PriceInput = Union[Sequence[float], np.ndarray, pd.Series]


def _check_period(period: int, name: str = "period") -> int:
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)) or period <= 0:
        raise InvalidParameter(f"{name} must be a positive integer, got {period!r}")
    return int(period)


def _as_array(prices: PriceInput) -> np.ndarray:
    if isinstance(prices, pd.Series):
        return prices.to_numpy(dtype=float)
    return np.asarray(list(prices), dtype=float)


def _to_optional_list(values: np.ndarray) -> List[Optional[float]]:
    return [None if np.isnan(v) else float(v) for v in values]


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # No losses in the window: maximal strength, not an error
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def _wilder_rsi(values: np.ndarray, period: int) -> np.ndarray:
    """
    Wilder RSI over a gap-free price array.

    Index ``period`` holds the RSI of the seed window; every later index
    applies one smoothing step. Earlier indices are NaN.
    """
    out = np.full(len(values), np.nan)
    if len(values) < period + 1:
        return out

    diffs = np.diff(values)
    gains = np.where(diffs > 0, diffs, 0.0)
    losses = np.where(diffs < 0, -diffs, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period
    out[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period, len(diffs)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i + 1] = _rsi_from_averages(avg_gain, avg_loss)

    return out


def sma(prices: PriceInput, period: int) -> List[Optional[float]]:
    """
    Simple moving average aligned with the input.

    Positions before ``period - 1`` are None; a window containing a missing
    (NaN) price is None as well.

    Raises:
        InvalidParameter: If period is not a positive integer
    """
    period = _check_period(period)
    values = _as_array(prices)
    if len(values) == 0:
        return []
    averages = pd.Series(values).rolling(window=period, min_periods=period).mean()
    return _to_optional_list(averages.to_numpy())


def rsi_series(prices: PriceInput, period: int = RSI_PERIOD) -> List[Optional[float]]:
    """
    RSI at every position of the input (None until enough history).

    Missing (NaN) prices are skipped: the recursion runs over the valid
    prices only and results are placed back at their positions.

    Raises:
        InvalidParameter: If period is not a positive integer
    """
    period = _check_period(period)
    values = _as_array(prices)
    valid = ~np.isnan(values)
    out = np.full(len(values), np.nan)
    out[valid] = _wilder_rsi(values[valid], period)
    return _to_optional_list(out)


def rsi(prices: PriceInput, period: int = RSI_PERIOD) -> Union[float, InsufficientData]:
    """
    Wilder RSI as of the last price.

    RSI = 100 - 100 / (1 + avgGain / avgLoss), with both averages seeded
    over the first ``period`` differences and then smoothed as
    ``avg = (avg * (period - 1) + x) / period``. Returns exactly 100 when the
    average loss is zero.

    Returns:
        RSI in [0, 100], or InsufficientData when fewer than period + 1
        (non-missing) prices are available

    Raises:
        InvalidParameter: If period is not a positive integer
    """
    period = _check_period(period)
    values = _as_array(prices)
    values = values[~np.isnan(values)]
    if len(values) < period + 1:
        return InsufficientData(required=period + 1, available=len(values), reason=f"RSI({period})")
    return float(_wilder_rsi(values, period)[-1])


@dataclass
class IndicatorValues:
    """Container for indicator values at a specific point in time."""
    timestamp: Optional[pd.Timestamp]
    price: float

    # Moving Averages
    sma_short: Optional[float] = None
    sma_long: Optional[float] = None
    price_above_sma_short: bool = False
    sma_bullish: bool = False  # Short SMA above long SMA

    # RSI
    rsi: Optional[float] = None
    rsi_oversold: bool = False  # RSI < oversold threshold
    rsi_overbought: bool = False  # RSI > overbought threshold


class TechnicalIndicators:
    """Calculates indicator series from price data."""

    def __init__(
        self,
        sma_short_period: int = SMA_SHORT_PERIOD,  # From shared.defaults
        sma_long_period: int = SMA_LONG_PERIOD,  # From shared.defaults
        rsi_period: int = RSI_PERIOD,  # From shared.defaults
        rsi_oversold: float = RSI_OVERSOLD,  # From shared.defaults
        rsi_overbought: float = RSI_OVERBOUGHT,  # From shared.defaults
    ):
        """
        Initialize indicator calculator.

        Args:
            sma_short_period: Short SMA period (default: from shared.defaults.SMA_SHORT_PERIOD)
            sma_long_period: Long SMA period (default: from shared.defaults.SMA_LONG_PERIOD)
            rsi_period: Period for RSI calculation (default: from shared.defaults.RSI_PERIOD)
            rsi_oversold: RSI level below which is oversold (default: from shared.defaults.RSI_OVERSOLD)
            rsi_overbought: RSI level above which is overbought (default: from shared.defaults.RSI_OVERBOUGHT)
        """
        self.sma_short_period = _check_period(sma_short_period, "sma_short_period")
        self.sma_long_period = _check_period(sma_long_period, "sma_long_period")
        self.rsi_period = _check_period(rsi_period, "rsi_period")
        self.rsi_oversold = rsi_oversold
        self.rsi_overbought = rsi_overbought

    def calculate_sma(self, prices: pd.Series, period: int) -> pd.Series:
        """Calculate Simple Moving Average (NaN until ``period`` prices)."""
        period = _check_period(period)
        return prices.astype(float).rolling(window=period, min_periods=period).mean()

    def calculate_rsi(self, prices: pd.Series) -> pd.Series:
        """
        Calculate Relative Strength Index with Wilder smoothing.

        RSI = 100 - (100 / (1 + RS))
        RS = Average Gain / Average Loss
        """
        values = rsi_series(prices, self.rsi_period)
        return pd.Series(
            [np.nan if v is None else v for v in values],
            index=prices.index,
            dtype=float,
        )

    def calculate_all(self, prices: pd.Series) -> pd.DataFrame:
        """
        Calculate all indicators and return as DataFrame.

        Args:
            prices: Chronological price series

        Returns:
            DataFrame with all indicator values (same index as prices)
        """
        df = pd.DataFrame(index=prices.index)
        df["price"] = prices.astype(float)

        sma_short = self.calculate_sma(prices, self.sma_short_period)
        sma_long = self.calculate_sma(prices, self.sma_long_period)
        df["sma_short"] = sma_short
        df["sma_long"] = sma_long
        df["price_above_sma_short"] = df["price"] > sma_short
        df["sma_bullish"] = sma_short > sma_long

        rsi_values = self.calculate_rsi(prices)
        df["rsi"] = rsi_values
        df["rsi_oversold"] = rsi_values < self.rsi_oversold
        df["rsi_overbought"] = rsi_values > self.rsi_overbought

        return df

    def get_indicators_at(self, prices: pd.Series) -> Optional[IndicatorValues]:
        """
        Get indicator values at the last point of a price series.

        Args:
            prices: Chronological price series

        Returns:
            IndicatorValues for the latest price, or None if prices is empty
        """
        if prices.empty:
            return None

        row = self.calculate_all(prices).iloc[-1]
        timestamp = prices.index[-1] if isinstance(prices.index, pd.DatetimeIndex) else None

        def _value(name: str) -> Optional[float]:
            return None if pd.isna(row[name]) else float(row[name])

        return IndicatorValues(
            timestamp=timestamp,
            price=float(row["price"]),
            sma_short=_value("sma_short"),
            sma_long=_value("sma_long"),
            price_above_sma_short=bool(row["price_above_sma_short"]),
            sma_bullish=bool(row["sma_bullish"]),
            rsi=_value("rsi"),
            rsi_oversold=bool(row["rsi_oversold"]),
            rsi_overbought=bool(row["rsi_overbought"]),
        )
