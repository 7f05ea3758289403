"""
Rule-based summaries of price history.

Structured assessments used when no external commentary is available:
trend/momentum classification from SMA and RSI, per-window price stats,
the gold/silver market overview and the near-high flag. Each result has a
``describe()`` for a plain-text rendering; presentation layers are free to
ignore it and format the fields themselves.
"""
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..shared.defaults import (
    RSI_OVERSOLD, RSI_OVERBOUGHT,
    TREND_FLAT_PCT, NEAR_HIGH_PCT,
    VOLATILITY_LOW_PCT, VOLATILITY_MEDIUM_PCT,
)
from ..shared.types import Instrument, InsufficientData


class Trend(Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"


class Momentum(Enum):
    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    NEUTRAL = "neutral"


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


@dataclass
class TechnicalAssessment:
    """Trend from the SMA pair, momentum from RSI. Either may be unknown (None)."""
    trend: Optional[Trend] = None
    momentum: Optional[Momentum] = None

    def describe(self) -> str:
        note = ""
        if self.trend == Trend.BULLISH:
            note += "Short-term trend is bullish (SMA 20 > 50). "
        elif self.trend == Trend.BEARISH:
            note += "Short-term trend is bearish (SMA 20 < 50). "
        if self.momentum == Momentum.OVERBOUGHT:
            note += "RSI indicates overbought conditions. "
        elif self.momentum == Momentum.OVERSOLD:
            note += "RSI indicates oversold conditions. "
        elif self.momentum == Momentum.NEUTRAL:
            note += "RSI shows neutral momentum. "
        return note.strip() or "Analysis in progress..."


def classify_rsi(
    value: Optional[float],
    oversold: float = RSI_OVERSOLD,
    overbought: float = RSI_OVERBOUGHT,
) -> Optional[Momentum]:
    if value is None or isinstance(value, InsufficientData):
        return None
    if value > overbought:
        return Momentum.OVERBOUGHT
    if value < oversold:
        return Momentum.OVERSOLD
    return Momentum.NEUTRAL


def assess_technicals(
    sma_short: Optional[float],
    sma_long: Optional[float],
    rsi_value,
    oversold: float = RSI_OVERSOLD,
    overbought: float = RSI_OVERBOUGHT,
) -> TechnicalAssessment:
    """
    Classify the latest indicator values.

    Args:
        sma_short: Latest short SMA (None if not yet defined)
        sma_long: Latest long SMA (None if not yet defined)
        rsi_value: Latest RSI, or InsufficientData

    Returns:
        TechnicalAssessment; equal SMAs give no trend
    """
    trend = None
    if sma_short is not None and sma_long is not None and sma_short != sma_long:
        trend = Trend.BULLISH if sma_short > sma_long else Trend.BEARISH
    return TechnicalAssessment(trend=trend, momentum=classify_rsi(rsi_value, oversold, overbought))


@dataclass
class PeriodStats:
    """Price statistics over one lookback window."""
    label: str
    low: float
    high: float
    change_pct: float
    volatility_pct: float  # Population std as % of mean
    direction: Direction
    points: int

    def describe(self) -> str:
        if self.volatility_pct > 2:
            return f"High volatility ({self.volatility_pct:.1f}%) with significant price swings."
        if self.change_pct > 1:
            return f"Strong upward momentum with {self.change_pct:.2f}% gain."
        if self.change_pct < -1:
            return f"Downward pressure with {self.change_pct:.2f}% decline."
        return "Stable trading with minimal movement."


def direction_of(change_pct: float, flat_pct: float = TREND_FLAT_PCT) -> Direction:
    if change_pct > flat_pct:
        return Direction.UP
    if change_pct < -flat_pct:
        return Direction.DOWN
    return Direction.FLAT


def analyze_period(prices: Sequence[float], label: str = "") -> Optional[PeriodStats]:
    """
    Low/high, first-to-last change and volatility of a price window.

    Returns:
        PeriodStats, or None for an empty window
    """
    values = np.asarray(list(prices), dtype=float)
    values = values[~np.isnan(values)]
    if len(values) == 0:
        return None

    change_pct = (values[-1] - values[0]) / values[0] * 100
    mean = values.mean()
    volatility_pct = float(values.std() / mean * 100) if mean else 0.0

    return PeriodStats(
        label=label,
        low=float(values.min()),
        high=float(values.max()),
        change_pct=float(change_pct),
        volatility_pct=volatility_pct,
        direction=direction_of(change_pct),
        points=len(values),
    )


SUMMARY_WINDOWS: List[Tuple[str, timedelta]] = [
    ("Last Hour", timedelta(hours=1)),
    ("Last 6 Hours", timedelta(hours=6)),
    ("Last 24 Hours", timedelta(hours=24)),
    ("Last 7 Days", timedelta(days=7)),
]


def summarize_windows(store, instrument: Instrument, windows=SUMMARY_WINDOWS) -> List[PeriodStats]:
    """
    PeriodStats for each non-empty lookback window of an instrument.

    Args:
        store: HistoryStore to read from
        instrument: Instrument to summarize
        windows: (label, timedelta) pairs
    """
    results = []
    for label, window in windows:
        stats = analyze_period([t.price for t in store.query(instrument, window)], label)
        if stats is not None:
            results.append(stats)
    return results


def period_change(prices: Sequence[float], lookback: int = 7) -> Optional[float]:
    """
    Percentage change from ``lookback`` points back to the latest point.

    Returns None unless more than ``lookback`` prices exist.
    """
    values = list(prices)
    if len(values) <= lookback:
        return None
    start, end = values[-lookback], values[-1]
    return (end - start) / start * 100


def volatility_label(volatility_pct: float) -> str:
    if volatility_pct < VOLATILITY_LOW_PCT:
        return "Low"
    if volatility_pct < VOLATILITY_MEDIUM_PCT:
        return "Medium"
    return "High"


def _swing_pct(prices: Sequence[float]) -> float:
    values = list(prices)
    if len(values) < 2:
        return 0.0
    return abs(values[-1] - values[0]) / values[0] * 100


def market_trend_label(change_pct: float, flat_pct: float = TREND_FLAT_PCT) -> str:
    if change_pct > flat_pct:
        return "Bullish"
    if change_pct < -flat_pct:
        return "Bearish"
    return "Stable"


@dataclass
class MarketStats:
    gold_silver_ratio: float
    volatility_pct: float
    volatility: str  # Low / Medium / High
    trend_pct: float = 0.0
    trend: str = "Stable"  # Bullish / Bearish / Stable

    def describe(self) -> str:
        return (
            f"Gold/silver ratio {self.gold_silver_ratio:.2f}, "
            f"volatility {self.volatility} ({self.volatility_pct:.2f}%), "
            f"market {self.trend} ({self.trend_pct:+.2f}%)"
        )


def market_stats(
    gold_price: float,
    silver_price: float,
    gold_recent: Sequence[float],
    silver_recent: Sequence[float],
    gold_change_pct: Optional[float] = None,
    silver_change_pct: Optional[float] = None,
) -> MarketStats:
    """
    Gold/silver ratio, an overall volatility label and the market trend.

    Volatility is the mean of each metal's absolute first-to-last swing over
    its recent prices (typically the last 7 ticks). The trend is the mean of
    the feed-reported daily change percentages, a missing one counting as 0.
    """
    volatility_pct = (_swing_pct(gold_recent) + _swing_pct(silver_recent)) / 2
    trend_pct = ((gold_change_pct or 0.0) + (silver_change_pct or 0.0)) / 2
    return MarketStats(
        gold_silver_ratio=gold_price / silver_price,
        volatility_pct=volatility_pct,
        volatility=volatility_label(volatility_pct),
        trend_pct=trend_pct,
        trend=market_trend_label(trend_pct),
    )


def is_near_high(price: float, high_price: Optional[float], threshold_pct: float = NEAR_HIGH_PCT) -> bool:
    """True when price is within the top ``100 - threshold_pct`` percent of the session high."""
    high = high_price or price
    return price / high * 100 > threshold_pct
