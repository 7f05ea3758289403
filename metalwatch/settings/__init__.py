"""
Tracker configuration and its YAML loader.
"""
from .config import TrackerConfig, FEED_SOURCES
from .config_loader import load_config_from_yaml

__all__ = [
    'TrackerConfig',
    'FEED_SOURCES',
    'load_config_from_yaml',
]
