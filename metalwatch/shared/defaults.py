"""
Centralized default values for the tracker.

This is the SINGLE SOURCE OF TRUTH for history, indicator, forecast and
feed defaults. All modules should import from here to ensure consistency.
"""

# History
MAX_HISTORY_TICKS = 1000  # Combined across all instruments
HISTORY_KEY = "metalwatch_history"  # Storage key of the tick log
CACHE_VERSION = "2.1"  # Bump when quote conversion changes to drop stale cached quotes

# Units
TROY_OUNCE_GRAMS = 31.1035  # Feed quotes are per troy ounce, history is per gram

# SMA (Simple Moving Average) defaults
SMA_SHORT_PERIOD = 20
SMA_LONG_PERIOD = 50

# RSI (Relative Strength Index) defaults
RSI_PERIOD = 14  # Wilder's standard
RSI_OVERSOLD = 30
RSI_OVERBOUGHT = 70

# Forecast defaults
FORECAST_HORIZON = 7  # Steps ahead
FORECAST_WINDOW = 90  # Most recent points used for the fit
BAND_MULTIPLIER = 1.5  # Heuristic width in standard errors, not a calibrated interval

# Analysis gating
MIN_ANALYSIS_POINTS = 50  # Below this the snapshot reports "collecting"
MIN_FORECAST_POINTS = 7

# Summary thresholds
TREND_FLAT_PCT = 0.5  # |change| <= this is "flat"
NEAR_HIGH_PCT = 98.0  # price/high*100 above this is "near high"
VOLATILITY_LOW_PCT = 2.0
VOLATILITY_MEDIUM_PCT = 5.0

# External feeds
PRICE_FEED_RESOURCE = "price_feed"
PRICE_FEED_REQUESTS_PER_HOUR = 7
PRICE_FEED_INTERVAL_SECONDS = 3600 / PRICE_FEED_REQUESTS_PER_HOUR  # ~8.57 minutes
COMMENTARY_RESOURCE = "commentary_feed"
COMMENTARY_INTERVAL_SECONDS = 3600  # One adjustment request per hour
QUOTA_WINDOW_SECONDS = 3600
FEED_TIMEOUT_SECONDS = 10

# Simulated feed reference prices in USD per troy ounce (used when nothing is stored yet)
SIMULATED_REFERENCE_PRICES = {
    "XAU": 2650.0,
    "XAG": 31.5,
    "XPT": 960.0,
    "XPD": 1000.0,
}
SIMULATED_MAX_VARIATION = 0.03  # Total band, i.e. +/-1.5%

# Service loop
POLL_INTERVAL_SECONDS = 60
TIMEZONE = "UTC"

# Files
STATE_PATH = "data/metalwatch_state.json"  # History, quota states and cached quotes
LOG_PATH = "logs/metalwatch.log"
CONFIG_PATH = "configs/metalwatch.yaml"
