"""
Indicator calculation module.

Provides:
- SMA and Wilder RSI (pure functions and a pandas calculator)
- Rule-based summaries (trend/momentum assessment, window stats, market overview)
"""
from .technical import (
    sma,
    rsi,
    rsi_series,
    TechnicalIndicators,
    IndicatorValues,
)
from .summary import (
    Trend,
    Momentum,
    Direction,
    TechnicalAssessment,
    PeriodStats,
    MarketStats,
    assess_technicals,
    classify_rsi,
    analyze_period,
    summarize_windows,
    market_trend_label,
    period_change,
    market_stats,
    is_near_high,
)

__all__ = [
    'sma',
    'rsi',
    'rsi_series',
    'TechnicalIndicators',
    'IndicatorValues',
    'Trend',
    'Momentum',
    'Direction',
    'TechnicalAssessment',
    'PeriodStats',
    'MarketStats',
    'assess_technicals',
    'classify_rsi',
    'analyze_period',
    'summarize_windows',
    'market_trend_label',
    'period_change',
    'market_stats',
    'is_near_high',
]
