"""
Shared wiring for the MetalWatch CLIs: logging, config and tracker assembly.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from metalwatch.automation.state import SessionState
from metalwatch.automation.tracker import MetalTracker
from metalwatch.feeds import GoldApiFeed, SimulatedFeed, generate_initial_history
from metalwatch.history.persistence import JsonFileStore, KeyValueStore, MemoryStore
from metalwatch.history.store import HistoryStore
from metalwatch.settings import TrackerConfig, load_config_from_yaml
from metalwatch.shared.defaults import CONFIG_PATH


logger = logging.getLogger(__name__)


def setup_logging(log_path: Optional[Path] = None, verbose: bool = False):
    """
    Setup logging to stdout and optionally to file.

    Args:
        log_path: Path to log file (None = stdout only)
        verbose: If True, use DEBUG level, otherwise INFO
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def load_config(config_path: Optional[str] = None) -> TrackerConfig:
    """
    Load the tracker config.

    An explicitly given path must exist. Without one, the default config
    file is used when present, else built-in defaults.

    Raises:
        FileNotFoundError: If an explicit config path doesn't exist
    """
    if config_path is not None:
        return load_config_from_yaml(config_path)
    if Path(CONFIG_PATH).exists():
        return load_config_from_yaml(CONFIG_PATH)
    return TrackerConfig()


def open_backend(config: TrackerConfig) -> KeyValueStore:
    if config.state_path:
        return JsonFileStore(config.state_path)
    return MemoryStore()


def build_tracker(
    config: TrackerConfig,
    simulate: bool = False,
    backend: Optional[KeyValueStore] = None,
) -> MetalTracker:
    """
    Assemble store, session state, feed and tracker from a config.

    Args:
        config: Tracker configuration
        simulate: Use the simulated feed regardless of config.feed_source
        backend: Persistence backend (default: from config.state_path)
    """
    backend = backend if backend is not None else open_backend(config)
    store = HistoryStore(backend=backend, max_ticks=config.max_ticks)
    session = SessionState(backend).init(cache_version=config.cache_version)

    if simulate or config.feed_source == "simulated":
        generate_initial_history(store, config.instruments, seed=config.simulated_seed)
        feed = SimulatedFeed(store=store, seed=config.simulated_seed)
    else:
        feed = GoldApiFeed(timeout=config.feed_timeout_seconds)
    logger.debug(f"Using {feed.name} feed, state at {config.state_path or 'memory'}")

    return MetalTracker(store=store, feed=feed, session=session, config=config)
