"""
YAML configuration loader for the tracker.

Loads TrackerConfig from YAML files so feeds, cadence and indicator
parameters can be changed without code changes.
"""
import yaml
from pathlib import Path
from typing import Union

from .config import TrackerConfig
from ..shared.defaults import *


def load_config_from_yaml(yaml_path: Union[str, Path]) -> TrackerConfig:
    """
    Load tracker configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        TrackerConfig object

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is empty or holds invalid values
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        config_dict = yaml.safe_load(f)

    if not config_dict:
        raise ValueError(f"Empty config file: {yaml_path}")
    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file must hold a mapping: {yaml_path}")

    data_params = config_dict.get('data', {})
    indicators = config_dict.get('indicators', {})
    sma = indicators.get('sma', {})
    rsi = indicators.get('rsi', {})
    forecast = config_dict.get('forecast', {})
    feeds = config_dict.get('feeds', {})
    price_feed = feeds.get('price', {})
    commentary = feeds.get('commentary', {})
    automation = config_dict.get('automation', {})

    raw_instruments = data_params.get('instruments')
    if raw_instruments is None or (isinstance(raw_instruments, list) and len(raw_instruments) == 0):
        instruments = ["XAU", "XAG"]
    else:
        instruments = raw_instruments if isinstance(raw_instruments, list) else [raw_instruments]

    # Quota given per hour; interval defaults to spreading it evenly over the window
    window_seconds = price_feed.get('window_seconds', QUOTA_WINDOW_SECONDS)
    quota = price_feed.get('requests_per_window', PRICE_FEED_REQUESTS_PER_HOUR)
    default_interval = window_seconds / quota if quota else PRICE_FEED_INTERVAL_SECONDS

    return TrackerConfig(
        instruments=instruments,

        # Data
        state_path=data_params.get('state_path', STATE_PATH),
        max_ticks=data_params.get('max_ticks', MAX_HISTORY_TICKS),
        cache_version=str(data_params.get('cache_version', CACHE_VERSION)),

        # Indicators
        sma_short_period=sma.get('short_period', SMA_SHORT_PERIOD),
        sma_long_period=sma.get('long_period', SMA_LONG_PERIOD),
        rsi_period=rsi.get('period', RSI_PERIOD),
        rsi_oversold=rsi.get('oversold', RSI_OVERSOLD),
        rsi_overbought=rsi.get('overbought', RSI_OVERBOUGHT),

        # Forecast
        forecast_horizon=forecast.get('horizon', FORECAST_HORIZON),
        forecast_window=forecast.get('window', FORECAST_WINDOW),
        band_multiplier=forecast.get('band_multiplier', BAND_MULTIPLIER),
        min_analysis_points=forecast.get('min_analysis_points', MIN_ANALYSIS_POINTS),
        min_forecast_points=forecast.get('min_forecast_points', MIN_FORECAST_POINTS),

        # Feeds
        feed_source=feeds.get('source', 'gold_api'),
        feed_timeout_seconds=feeds.get('timeout_seconds', FEED_TIMEOUT_SECONDS),
        price_feed_interval_seconds=price_feed.get('interval_seconds', default_interval),
        price_feed_quota=quota,
        quota_window_seconds=window_seconds,
        commentary_interval_seconds=commentary.get('interval_seconds', COMMENTARY_INTERVAL_SECONDS),
        simulated_seed=feeds.get('simulated_seed'),

        # Automation
        poll_interval_seconds=automation.get('poll_interval_seconds', POLL_INTERVAL_SECONDS),
        timezone=automation.get('timezone', TIMEZONE),
        log_path=automation.get('log_path', LOG_PATH),
    )
