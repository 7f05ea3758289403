"""
MetalWatch precious-metals tracking modules.

Provides unified interfaces for:
- Bounded price history (append, windowed queries, CSV export)
- Indicator calculations (SMA, RSI)
- Linear-trend forecasting with confidence bands
- Refresh gating for external price and commentary feeds
"""
__version__ = "0.3.0"
