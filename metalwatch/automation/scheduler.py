"""
Fixed-cadence scheduler for the polling service.

Invokes a tick callable every ``interval_seconds``. The analytics core
never owns timers; this is the only place the service waits.
"""
import logging
import time
from datetime import datetime
from typing import Callable, Optional

import pytz

from ..shared.defaults import POLL_INTERVAL_SECONDS, TIMEZONE


logger = logging.getLogger(__name__)


class Scheduler:
    """
    Manages timing for the polling loop.

    Responsibilities:
    - Determine when the next tick is due
    - Sleep in bounded chunks so shutdown requests are honoured quickly
    - Keep ticking when a single tick fails
    """

    def __init__(
        self,
        interval_seconds: float = POLL_INTERVAL_SECONDS,
        timezone: str = TIMEZONE,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        max_sleep_chunk: float = 5.0,
    ):
        """
        Initialize scheduler.

        Args:
            interval_seconds: Seconds between ticks
            timezone: Timezone used when logging run times (default: UTC)
            clock: Returns current epoch seconds
            sleep: Sleep function (injectable for tests)
            max_sleep_chunk: Longest single sleep while waiting
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        self.interval_seconds = interval_seconds
        self.tz = pytz.timezone(timezone)
        self.clock = clock
        self.sleep = sleep
        self.max_sleep_chunk = max_sleep_chunk

        # Epoch seconds of the last tick, None before the first one
        self.last_run: Optional[float] = None

    def get_current_time(self) -> datetime:
        """Get current time in the configured timezone."""
        return datetime.fromtimestamp(self.clock(), self.tz)

    def next_run_time(self) -> datetime:
        """Datetime of the next tick (now if never run)."""
        if self.last_run is None:
            return self.get_current_time()
        return datetime.fromtimestamp(self.last_run + self.interval_seconds, self.tz)

    def seconds_until_next_run(self) -> float:
        if self.last_run is None:
            return 0.0
        return max(0.0, self.last_run + self.interval_seconds - self.clock())

    def due(self) -> bool:
        return self.seconds_until_next_run() <= 0

    def mark_run(self, when: Optional[float] = None):
        """
        Mark a tick as done.

        Args:
            when: Epoch seconds of the tick (default: now)
        """
        self.last_run = self.clock() if when is None else when
        logger.debug(f"Next run at {self.next_run_time().strftime('%Y-%m-%d %H:%M:%S %Z')}")

    def wait_until_due(self, should_stop: Callable[[], bool] = lambda: False) -> bool:
        """
        Block until the next tick is due.

        Returns:
            False if should_stop() became true while waiting, else True
        """
        while not self.due():
            if should_stop():
                return False
            self.sleep(min(self.seconds_until_next_run(), self.max_sleep_chunk))
        return not should_stop()

    def run(
        self,
        tick: Callable[[], None],
        should_stop: Callable[[], bool] = lambda: False,
        max_runs: Optional[int] = None,
    ) -> int:
        """
        Call tick() at the configured cadence until stopped.

        Args:
            tick: Work to do on each run
            should_stop: Polled between sleeps; True ends the loop
            max_runs: Stop after this many ticks (None = unbounded)

        Returns:
            Number of ticks executed
        """
        runs = 0
        logger.info(f"Scheduler started: every {self.interval_seconds:.0f}s")
        while max_runs is None or runs < max_runs:
            if not self.wait_until_due(should_stop):
                break
            try:
                tick()
            except Exception as e:
                logger.exception(f"Tick failed, skipping this cycle: {e}")
            self.mark_run()
            runs += 1
        logger.info(f"Scheduler stopped after {runs} run(s)")
        return runs
