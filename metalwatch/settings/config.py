"""
Tracker configuration.

One dataclass holds everything the tracker service, indicators and forecast
need. Validation runs at construction time (fail fast with clear errors).
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ..shared.defaults import (
    STATE_PATH, LOG_PATH,
    MAX_HISTORY_TICKS, CACHE_VERSION,
    SMA_SHORT_PERIOD, SMA_LONG_PERIOD,
    RSI_PERIOD, RSI_OVERSOLD, RSI_OVERBOUGHT,
    FORECAST_HORIZON, FORECAST_WINDOW, BAND_MULTIPLIER,
    MIN_ANALYSIS_POINTS, MIN_FORECAST_POINTS,
    PRICE_FEED_INTERVAL_SECONDS, PRICE_FEED_REQUESTS_PER_HOUR,
    QUOTA_WINDOW_SECONDS, COMMENTARY_INTERVAL_SECONDS, FEED_TIMEOUT_SECONDS,
    POLL_INTERVAL_SECONDS, TIMEZONE,
)
from ..shared.types import Instrument

FEED_SOURCES = ("gold_api", "simulated")


def _validate_config(
    *,
    instruments: List[Instrument],
    max_ticks: int,
    sma_short_period: int,
    sma_long_period: int,
    rsi_period: int,
    rsi_oversold: float,
    rsi_overbought: float,
    forecast_horizon: int,
    forecast_window: int,
    band_multiplier: float,
    min_analysis_points: int,
    min_forecast_points: int,
    price_feed_interval_seconds: float,
    price_feed_quota: Optional[int],
    quota_window_seconds: float,
    commentary_interval_seconds: float,
    poll_interval_seconds: float,
    feed_source: str,
) -> None:
    """Validate tracker parameters. Raises ValueError with clear message on failure."""
    if not instruments:
        raise ValueError("At least one instrument must be configured")
    if max_ticks < 1:
        raise ValueError(f"max_ticks must be >= 1, got {max_ticks}")
    if sma_short_period < 1 or sma_long_period < 1:
        raise ValueError(
            f"SMA periods must be >= 1, got short={sma_short_period} long={sma_long_period}"
        )
    if sma_short_period >= sma_long_period:
        raise ValueError(
            f"SMA short_period ({sma_short_period}) must be less than long_period ({sma_long_period})"
        )
    if rsi_period < 1:
        raise ValueError(f"rsi_period must be >= 1, got {rsi_period}")
    if not (0 <= rsi_oversold < rsi_overbought <= 100):
        raise ValueError(
            f"RSI thresholds must satisfy 0 <= oversold ({rsi_oversold}) < overbought ({rsi_overbought}) <= 100"
        )
    if forecast_horizon < 1:
        raise ValueError(f"forecast horizon must be >= 1, got {forecast_horizon}")
    if forecast_window < 2:
        raise ValueError(f"forecast window must be >= 2, got {forecast_window}")
    if band_multiplier < 0:
        raise ValueError(f"band_multiplier must be >= 0, got {band_multiplier}")
    if min_forecast_points < 2:
        raise ValueError(f"min_forecast_points must be >= 2, got {min_forecast_points}")
    if min_analysis_points < 1:
        raise ValueError(f"min_analysis_points must be >= 1, got {min_analysis_points}")
    if price_feed_interval_seconds < 0 or commentary_interval_seconds < 0:
        raise ValueError("Feed intervals must be >= 0")
    if price_feed_quota is not None and price_feed_quota < 1:
        raise ValueError(f"price feed quota must be >= 1, got {price_feed_quota}")
    if quota_window_seconds <= 0:
        raise ValueError(f"quota_window_seconds must be > 0, got {quota_window_seconds}")
    if poll_interval_seconds <= 0:
        raise ValueError(f"poll_interval_seconds must be > 0, got {poll_interval_seconds}")
    if feed_source not in FEED_SOURCES:
        raise ValueError(f"feed source must be one of {FEED_SOURCES}, got '{feed_source}'")


@dataclass
class TrackerConfig:
    """Configuration for the tracker service."""
    instruments: List[Instrument] = field(
        default_factory=lambda: [Instrument.GOLD, Instrument.SILVER]
    )

    # Data
    state_path: Optional[str] = STATE_PATH  # None = in-memory only
    max_ticks: int = MAX_HISTORY_TICKS
    cache_version: str = CACHE_VERSION

    # Indicators
    sma_short_period: int = SMA_SHORT_PERIOD
    sma_long_period: int = SMA_LONG_PERIOD
    rsi_period: int = RSI_PERIOD
    rsi_oversold: float = RSI_OVERSOLD
    rsi_overbought: float = RSI_OVERBOUGHT

    # Forecast
    forecast_horizon: int = FORECAST_HORIZON
    forecast_window: int = FORECAST_WINDOW
    band_multiplier: float = BAND_MULTIPLIER
    min_analysis_points: int = MIN_ANALYSIS_POINTS
    min_forecast_points: int = MIN_FORECAST_POINTS

    # Feeds
    feed_source: str = "gold_api"
    feed_timeout_seconds: float = FEED_TIMEOUT_SECONDS
    price_feed_interval_seconds: float = PRICE_FEED_INTERVAL_SECONDS
    price_feed_quota: Optional[int] = PRICE_FEED_REQUESTS_PER_HOUR  # None = unlimited
    quota_window_seconds: float = QUOTA_WINDOW_SECONDS
    commentary_interval_seconds: float = COMMENTARY_INTERVAL_SECONDS
    simulated_seed: Optional[int] = None

    # Automation
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    timezone: str = TIMEZONE
    log_path: Optional[str] = LOG_PATH

    def __post_init__(self) -> None:
        self.instruments = [Instrument.parse(i) for i in self.instruments]
        _validate_config(
            instruments=self.instruments,
            max_ticks=self.max_ticks,
            sma_short_period=self.sma_short_period,
            sma_long_period=self.sma_long_period,
            rsi_period=self.rsi_period,
            rsi_oversold=self.rsi_oversold,
            rsi_overbought=self.rsi_overbought,
            forecast_horizon=self.forecast_horizon,
            forecast_window=self.forecast_window,
            band_multiplier=self.band_multiplier,
            min_analysis_points=self.min_analysis_points,
            min_forecast_points=self.min_forecast_points,
            price_feed_interval_seconds=self.price_feed_interval_seconds,
            price_feed_quota=self.price_feed_quota,
            quota_window_seconds=self.quota_window_seconds,
            commentary_interval_seconds=self.commentary_interval_seconds,
            poll_interval_seconds=self.poll_interval_seconds,
            feed_source=self.feed_source,
        )
