"""
Offline price feed.

Produces a bounded random walk around the last stored price so the tracker,
indicators and forecast can be exercised without network access.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

import numpy as np

from ..history.store import HistoryStore
from ..shared.defaults import (
    SIMULATED_MAX_VARIATION,
    SIMULATED_REFERENCE_PRICES,
    TROY_OUNCE_GRAMS,
)
from ..shared.types import Instrument, Tick
from .base import PriceFeed, Quote


logger = logging.getLogger(__name__)


def reference_price(instrument: Instrument) -> float:
    """Reference spot price per gram for an instrument."""
    return SIMULATED_REFERENCE_PRICES[instrument.value] / TROY_OUNCE_GRAMS


class SimulatedFeed(PriceFeed):
    """
    Random-walk feed.

    Each quote moves at most ``max_variation / 2`` (default +/-1.5%) from the
    previous price: the latest stored tick when a store is attached, else the
    feed's own last quote, else the instrument's reference price.
    """

    name = "simulated"

    def __init__(
        self,
        store: Optional[HistoryStore] = None,
        seed: Optional[int] = None,
        max_variation: float = SIMULATED_MAX_VARIATION,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.rng = np.random.default_rng(seed)
        self.max_variation = max_variation
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._last = {}

    def _previous_price(self, instrument: Instrument) -> float:
        if self.store is not None:
            latest = self.store.latest(instrument)
            if latest is not None:
                return latest.price
        return self._last.get(instrument, reference_price(instrument))

    def step(self, price: float) -> float:
        """Next price of the walk."""
        return price * (1 + (self.rng.random() - 0.5) * self.max_variation)

    def fetch(self, instrument: Instrument) -> Quote:
        price = self.step(self._previous_price(instrument))
        self._last[instrument] = price
        return Quote(instrument=instrument, price=price, timestamp=self.clock(), source=self.name)


def generate_initial_history(
    store: HistoryStore,
    instruments: Sequence[Instrument] = (Instrument.GOLD, Instrument.SILVER),
    days: int = 30,
    seed: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Seed an empty store with one simulated tick per day per instrument.

    Stores that already hold ticks are left alone.

    Args:
        store: History store to fill
        instruments: Instruments to seed
        days: Number of daily ticks, ending at ``now``
        seed: Random seed
        now: End of the seeded range (default: current UTC time)

    Returns:
        Number of ticks appended
    """
    if len(store) > 0:
        logger.info(f"History holds {len(store)} ticks, skipping seeding")
        return 0

    now = now or datetime.now(timezone.utc)
    feed = SimulatedFeed(seed=seed)
    added = 0
    for day in range(days, 0, -1):
        ts = now - timedelta(days=day - 1)
        for instrument in instruments:
            quote = feed.fetch(instrument)
            store.append(Tick(instrument=instrument, price=quote.price, timestamp=ts))
            added += 1

    logger.info(f"Seeded {added} simulated ticks over {days} days")
    return added
