"""
Session state for quota bookkeeping and last-known-good results.

Request timestamps, counters and cached quotes live in one explicit object
persisted through a KeyValueStore, so a restarted service picks up its
cooldowns and fallbacks where it left off.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional

from ..history.persistence import KeyValueStore
from ..shared.defaults import CACHE_VERSION, QUOTA_WINDOW_SECONDS
from ..shared.errors import ExternalResourceUnavailable
from .rate_controller import QuotaState, RateController


logger = logging.getLogger(__name__)

QUOTA_PREFIX = "quota_"
CACHE_PREFIX = "cached_"
CACHE_VERSION_KEY = "cacheVersion"


class SessionState:
    """
    Manages quota states and cached results.

    Responsibilities:
    - Load and persist one QuotaState per external resource
    - Keep the last successful result per cache key (with its age)
    - Drop cached results when the cache version changes

    The in-memory copies are authoritative: a failed backend write is
    logged and retried on the next change, never raised to the poller.
    """

    def __init__(self, backend: KeyValueStore, clock: Callable[[], float] = time.time):
        """
        Initialize session state.

        Args:
            backend: Persistence adapter shared with the history store
            clock: Returns current epoch seconds
        """
        self.backend = backend
        self.clock = clock
        self.quotas: Dict[str, QuotaState] = {}
        self._cache: Dict[str, Dict[str, Any]] = {}

    def init(self, cache_version: str = CACHE_VERSION) -> "SessionState":
        """
        Load persisted quota states and cached results, and validate the cache version.

        Args:
            cache_version: Expected version; a mismatch clears cached results
        """
        self.quotas = {}
        self._cache = {}
        for key in self.backend.keys():
            if not key.startswith(QUOTA_PREFIX):
                continue
            try:
                state = QuotaState.from_dict(self.backend.get(key))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Discarding malformed quota state '{key}': {e}")
                self._delete(key)
                continue
            self.quotas[state.resource] = state

        stored_version = self.backend.get(CACHE_VERSION_KEY)
        if stored_version != cache_version:
            dropped = self._delete_prefixed(CACHE_PREFIX)
            self._write(CACHE_VERSION_KEY, cache_version)
            logger.info(f"Cache version {stored_version} -> {cache_version}, dropped {dropped} cached result(s)")
        else:
            for key in self.backend.keys():
                if not key.startswith(CACHE_PREFIX):
                    continue
                entry = self.backend.get(key)
                if isinstance(entry, dict) and "value" in entry and "cached_at" in entry:
                    self._cache[key[len(CACHE_PREFIX):]] = entry

        logger.info(f"Session state loaded: {len(self.quotas)} quota state(s), {len(self._cache)} cached result(s)")
        return self

    def reset(self):
        """Forget all quota bookkeeping and cached results."""
        self.quotas = {}
        self._cache = {}
        removed = self._delete_prefixed(QUOTA_PREFIX) + self._delete_prefixed(CACHE_PREFIX)
        logger.info(f"Session state reset ({removed} keys removed)")

    def _write(self, key: str, value: Any):
        try:
            self.backend.set(key, value)
        except ExternalResourceUnavailable as e:
            logger.error(f"Session state '{key}' not persisted: {e}")

    def _delete(self, key: str):
        try:
            self.backend.delete(key)
        except ExternalResourceUnavailable as e:
            logger.error(f"Session state '{key}' not removed: {e}")

    def _delete_prefixed(self, prefix: str) -> int:
        keys = [k for k in self.backend.keys() if k.startswith(prefix)]
        for key in keys:
            self._delete(key)
        return len(keys)

    def quota(self, resource: str) -> QuotaState:
        """QuotaState for a resource (a fresh, never-requested one if unknown)."""
        if resource not in self.quotas:
            self.quotas[resource] = QuotaState(resource=resource)
        return self.quotas[resource]

    def save_quota(self, state: QuotaState):
        self.quotas[state.resource] = state
        self._write(QUOTA_PREFIX + state.resource, state.to_dict())

    def controller(
        self,
        resource: str,
        interval_seconds: float,
        quota: Optional[int] = None,
        window_seconds: float = QUOTA_WINDOW_SECONDS,
    ) -> RateController:
        """Build a RateController whose state is restored from and saved to this session."""
        return RateController(
            resource=resource,
            interval_seconds=interval_seconds,
            quota=quota,
            window_seconds=window_seconds,
            clock=self.clock,
            state=self.quota(resource),
            on_change=self.save_quota,
        )

    def get_cached(self, key: str) -> Optional[Any]:
        """Last cached value for key, or None."""
        entry = self._cache.get(key)
        return None if entry is None else entry["value"]

    def cached_age(self, key: str) -> Optional[float]:
        """Seconds since key was cached, or None."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        return self.clock() - float(entry["cached_at"])

    def set_cached(self, key: str, value: Any):
        entry = {"value": value, "cached_at": self.clock()}
        self._cache[key] = entry
        self._write(CACHE_PREFIX + key, entry)
        logger.debug(f"Cached result for '{key}'")
