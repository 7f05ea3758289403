"""
Price feed adapters.

This module provides:
- PriceFeed interface and the Quote value
- GoldApiFeed: live spot prices from gold-api.com
- SimulatedFeed: offline random walk, plus history seeding
"""
from .base import PriceFeed, Quote
from .gold_api import GoldApiFeed
from .simulated import SimulatedFeed, generate_initial_history, reference_price

__all__ = [
    'PriceFeed',
    'Quote',
    'GoldApiFeed',
    'SimulatedFeed',
    'generate_initial_history',
    'reference_price',
]
