"""
Shared types, errors and defaults for the tracker.

This module provides:
- Instrument enum, Tick dataclass and the InsufficientData result value
- The error taxonomy (InvalidTick, InvalidParameter, ExternalResourceUnavailable)
- Centralized default values for history, indicators, forecast and feeds
"""
from .types import Instrument, Tick, InsufficientData
from .errors import (
    MetalWatchError,
    InvalidTick,
    InvalidParameter,
    ExternalResourceUnavailable,
)
from .defaults import (
    MAX_HISTORY_TICKS,
    SMA_SHORT_PERIOD, SMA_LONG_PERIOD,
    RSI_PERIOD, RSI_OVERSOLD, RSI_OVERBOUGHT,
    FORECAST_HORIZON, FORECAST_WINDOW, BAND_MULTIPLIER,
)

__all__ = [
    'Instrument',
    'Tick',
    'InsufficientData',
    'MetalWatchError',
    'InvalidTick',
    'InvalidParameter',
    'ExternalResourceUnavailable',
    'MAX_HISTORY_TICKS',
    'SMA_SHORT_PERIOD', 'SMA_LONG_PERIOD',
    'RSI_PERIOD', 'RSI_OVERSOLD', 'RSI_OVERBOUGHT',
    'FORECAST_HORIZON', 'FORECAST_WINDOW', 'BAND_MULTIPLIER',
]
