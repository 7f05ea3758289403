"""
Bounded tick history for all tracked instruments.

The store is the single owner of the tick log:
- append() is the only mutator besides clear()
- the log holds at most ``max_ticks`` entries across ALL instruments and
  evicts oldest-inserted first
- reads are chronological, lazy and never mutate
- every append is persisted synchronously through a KeyValueStore
"""
import logging
from collections import deque
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Deque, Iterator, List, Optional, Union

import pandas as pd

from ..shared.defaults import HISTORY_KEY, MAX_HISTORY_TICKS
from ..shared.errors import ExternalResourceUnavailable, InvalidParameter, InvalidTick
from ..shared.types import Instrument, Tick, to_utc
from .persistence import KeyValueStore, MemoryStore


logger = logging.getLogger(__name__)


class TimeWindow(Enum):
    """Named lookback windows used by charts and summaries."""
    ONE_DAY = "1D"
    SEVEN_DAYS = "7D"
    ONE_MONTH = "1M"
    ONE_YEAR = "1Y"
    ALL = "ALL"

    @property
    def duration(self) -> Optional[timedelta]:
        """Lookback length; None means unbounded."""
        return _WINDOW_DURATIONS[self]


_WINDOW_DURATIONS = {
    TimeWindow.ONE_DAY: timedelta(days=1),
    TimeWindow.SEVEN_DAYS: timedelta(days=7),
    TimeWindow.ONE_MONTH: timedelta(days=30),
    TimeWindow.ONE_YEAR: timedelta(days=365),
    TimeWindow.ALL: None,
}

WindowLike = Union[TimeWindow, timedelta, str, None]


def resolve_window(window: WindowLike) -> Optional[timedelta]:
    """
    Normalize a window argument to a timedelta (None = all history).

    Args:
        window: TimeWindow, timedelta, label such as "7D", or None

    Raises:
        InvalidParameter: On unknown labels or non-positive timedeltas
    """
    if window is None:
        return None
    if isinstance(window, TimeWindow):
        return window.duration
    if isinstance(window, timedelta):
        if window <= timedelta(0):
            raise InvalidParameter(f"time window must be positive, got {window}")
        return window
    try:
        return TimeWindow(str(window).upper()).duration
    except ValueError:
        raise InvalidParameter(
            f"Unknown time window '{window}'. Available: {[w.value for w in TimeWindow]}"
        ) from None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HistoryStore:
    """
    Append-only bounded log of price ticks.

    Responsibilities:
    - Validate and append ticks, evicting the oldest beyond the bound
    - Persist the log after every append
    - Serve chronological, time-windowed reads per instrument
    """

    def __init__(
        self,
        backend: Optional[KeyValueStore] = None,
        max_ticks: int = MAX_HISTORY_TICKS,
        clock: Callable[[], datetime] = _utc_now,
        key: str = HISTORY_KEY,
    ):
        """
        Initialize the store and load any persisted history.

        Args:
            backend: Persistence adapter (default: in-memory)
            max_ticks: Maximum ticks retained across all instruments
            clock: Returns "now" for windowed queries (injectable for tests)
            key: Storage key of the tick log
        """
        if max_ticks <= 0:
            raise InvalidParameter(f"max_ticks must be > 0, got {max_ticks}")
        self.backend = backend if backend is not None else MemoryStore()
        self.max_ticks = max_ticks
        self.clock = clock
        self.key = key
        self._ticks: Deque[Tick] = deque()
        self._load()

    def _load(self):
        """Load persisted ticks, skipping malformed records."""
        stored = self.backend.get(self.key)
        if stored is None:
            return
        if not isinstance(stored, list):
            logger.error(f"Stored history under '{self.key}' is not a list, starting empty")
            return

        skipped = 0
        for record in stored:
            try:
                self._ticks.append(Tick.from_record(record))
            except InvalidTick as e:
                skipped += 1
                logger.warning(f"Skipping stored tick: {e}")

        while len(self._ticks) > self.max_ticks:
            self._ticks.popleft()

        logger.info(f"Loaded {len(self._ticks)} ticks from history" + (f" ({skipped} skipped)" if skipped else ""))

    def _persist(self):
        try:
            self.backend.set(self.key, [t.to_record() for t in self._ticks])
        except ExternalResourceUnavailable as e:
            # In-memory log stays authoritative; next append retries the write
            logger.error(f"History not persisted: {e}")

    def append(self, tick: Tick) -> Tick:
        """
        Validate and store a tick.

        Args:
            tick: Tick to store (naive timestamps are taken as UTC)

        Returns:
            The stored (normalized) tick

        Raises:
            InvalidTick: If the tick is malformed; nothing is stored
        """
        if not isinstance(tick, Tick):
            raise InvalidTick(f"expected a Tick, got {type(tick).__name__}")
        tick = tick.validate()

        self._ticks.append(tick)
        evicted = 0
        while len(self._ticks) > self.max_ticks:
            self._ticks.popleft()
            evicted += 1
        if evicted:
            logger.debug(f"Evicted {evicted} oldest tick(s), {len(self._ticks)} retained")

        self._persist()
        return tick

    def query(
        self,
        instrument: Optional[Instrument] = None,
        window: WindowLike = TimeWindow.ALL,
    ) -> Iterator[Tick]:
        """
        Iterate ticks of an instrument in chronological order.

        Args:
            instrument: Instrument to read, or None for all instruments
            window: Lookback window ending at clock(); ALL ignores the clock

        Returns:
            Generator over ticks with ``now - window <= timestamp <= now``.
            Each call returns a fresh generator over a snapshot of the log.
        """
        duration = resolve_window(window)
        if instrument is not None:
            instrument = Instrument.parse(instrument)

        snapshot = [t for t in self._ticks if instrument is None or t.instrument == instrument]
        if duration is not None:
            now = to_utc(self.clock())
            cutoff = now - duration
            snapshot = [t for t in snapshot if cutoff <= t.timestamp <= now]

        # sorted() is stable: equal timestamps keep insertion order
        def _iterate(ticks: List[Tick]) -> Iterator[Tick]:
            for t in sorted(ticks, key=lambda t: t.timestamp):
                yield t

        return _iterate(snapshot)

    def prices(
        self,
        instrument: Instrument,
        window: WindowLike = TimeWindow.ALL,
    ) -> pd.Series:
        """
        Prices of an instrument as a Series indexed by timestamp.

        Returns:
            Chronological float Series (empty if no ticks)
        """
        ticks = list(self.query(instrument, window))
        index = pd.DatetimeIndex([t.timestamp for t in ticks], name="timestamp")
        return pd.Series([t.price for t in ticks], index=index, dtype=float, name="price")

    def latest(self, instrument: Instrument) -> Optional[Tick]:
        """Most recent tick of an instrument by timestamp, or None."""
        latest_tick = None
        for tick in self.query(instrument):
            latest_tick = tick
        return latest_tick

    def count(self, instrument: Optional[Instrument] = None) -> int:
        if instrument is None:
            return len(self._ticks)
        instrument = Instrument.parse(instrument)
        return sum(1 for t in self._ticks if t.instrument == instrument)

    def clear(self):
        """Drop all history, in memory and in the backend."""
        self._ticks.clear()
        self.backend.delete(self.key)
        logger.info("History cleared")

    def __len__(self) -> int:
        return len(self._ticks)
