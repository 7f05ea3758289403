"""
Refresh gating for external resources.

Each external resource (spot-price feed, commentary feed) gets its own
RateController holding a QuotaState. The controller answers "may we call
out now?" from the elapsed time since the last request and the number of
requests issued in the current quota window. It performs no I/O itself.
"""
import logging
import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)

# Float clock readings that fall short of a boundary by less than this count as reaching it
CLOCK_TOLERANCE_SECONDS = 1e-6


class RefreshState(Enum):
    READY = "ready"
    COOLDOWN = "cooldown"


@dataclass
class QuotaState:
    """Persisted request bookkeeping for one resource. Timestamps are epoch seconds; 0 means never."""
    resource: str
    last_request_ts: float = 0.0
    request_count: int = 0
    window_started_ts: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuotaState":
        """Create from dictionary."""
        return cls(
            resource=str(data["resource"]),
            last_request_ts=float(data.get("last_request_ts", 0.0)),
            request_count=int(data.get("request_count", 0)),
            window_started_ts=float(data.get("window_started_ts", 0.0)),
        )


@dataclass(frozen=True)
class RefreshDecision:
    """Outcome of should_refresh(); remaining_seconds is 0 when READY."""
    state: RefreshState
    remaining_seconds: float
    request_count: int
    quota: Optional[int]

    @property
    def ready(self) -> bool:
        return self.state == RefreshState.READY


class RateController:
    """
    READY/COOLDOWN gate for one external resource.

    Responsibilities:
    - Enforce a minimum interval between requests
    - Count requests per quota window and block once the quota is used up
    - Let a cold start (nothing cached) through regardless of cooldown
    """

    def __init__(
        self,
        resource: str,
        interval_seconds: float,
        quota: Optional[int] = None,
        window_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
        state: Optional[QuotaState] = None,
        on_change: Optional[Callable[[QuotaState], None]] = None,
    ):
        """
        Initialize controller.

        Args:
            resource: Resource identifier (e.g. "price_feed")
            interval_seconds: Minimum seconds between requests
            quota: Maximum requests per window (None = unlimited)
            window_seconds: Length of the quota window
            clock: Returns current epoch seconds (injectable for tests)
            state: Restored QuotaState (default: never requested)
            on_change: Called with the state after every mutation (persistence hook)
        """
        if interval_seconds < 0:
            raise ValueError(f"interval_seconds must be >= 0, got {interval_seconds}")
        if quota is not None and quota < 1:
            raise ValueError(f"quota must be >= 1, got {quota}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")

        self.resource = resource
        self.interval_seconds = interval_seconds
        self.quota = quota
        self.window_seconds = window_seconds
        self.clock = clock
        self.state = state if state is not None else QuotaState(resource=resource)
        self.on_change = on_change

    def _quota_exhausted(self, now: float) -> bool:
        if self.quota is None or self.state.request_count < self.quota:
            return False
        # An overdue window no longer blocks, even before reset_window() runs
        return now - self.state.window_started_ts + CLOCK_TOLERANCE_SECONDS < self.window_seconds

    def should_refresh(self) -> RefreshDecision:
        """
        Decide whether a new external request is allowed now.

        Does not mutate state: repeated calls at the same clock reading
        return the same decision.
        """
        now = self.clock()
        remaining = 0.0
        blocked = False

        if self.state.last_request_ts != 0:
            elapsed = now - self.state.last_request_ts
            if elapsed + CLOCK_TOLERANCE_SECONDS < self.interval_seconds:
                remaining = self.interval_seconds - elapsed
                blocked = True

        if self._quota_exhausted(now):
            window_elapsed = now - self.state.window_started_ts
            remaining = max(remaining, self.window_seconds - window_elapsed)
            blocked = True

        state = RefreshState.COOLDOWN if blocked else RefreshState.READY
        return RefreshDecision(
            state=state,
            remaining_seconds=remaining,
            request_count=self.state.request_count,
            quota=self.quota,
        )

    def admit(self, has_cached: bool) -> bool:
        """
        Whether the caller should issue the external request.

        On COOLDOWN the caller must serve its cached result; with nothing
        cached the request is forced through so a cold start cannot stall.
        """
        decision = self.should_refresh()
        if decision.ready:
            return True
        if not has_cached:
            logger.info(f"{self.resource}: cooldown overridden, nothing cached yet")
            return True
        logger.debug(
            f"{self.resource}: using cached result, next request in "
            f"{decision.remaining_seconds / 60:.1f} min "
            f"({decision.request_count}/{self.quota or '-'} this window)"
        )
        return False

    def record_request(self):
        """Register an issued request: restart the interval and count it against the window."""
        now = self.clock()
        if self.state.window_started_ts == 0 or self.window_due():
            self.state.window_started_ts = now
            self.state.request_count = 0
        self.state.last_request_ts = now
        self.state.request_count += 1
        logger.debug(f"{self.resource}: request {self.state.request_count}/{self.quota or '-'} this window")
        self._changed()

    def window_due(self) -> bool:
        """True when the current quota window has run its full length."""
        if self.state.window_started_ts == 0:
            return False
        return self.clock() - self.state.window_started_ts + CLOCK_TOLERANCE_SECONDS >= self.window_seconds

    def reset_window(self):
        """Clear the window's request count. The last request time is kept."""
        self.state.request_count = 0
        self.state.window_started_ts = self.clock()
        logger.info(f"{self.resource}: request counter reset")
        self._changed()

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self.state)
