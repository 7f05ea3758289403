"""
Forecast module.

Provides the OLS linear-trend forecaster with heuristic confidence bands
and helpers for optional external per-step adjustments.
"""
from .linear import forecast, ForecastResult, LinearForecaster
from .adjustment import AdjustmentProvider, parse_adjustment_text, validate_adjustment

__all__ = [
    'forecast',
    'ForecastResult',
    'LinearForecaster',
    'AdjustmentProvider',
    'parse_adjustment_text',
    'validate_adjustment',
]
