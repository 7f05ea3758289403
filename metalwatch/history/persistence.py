"""
Key-value persistence backends for the tick log and session state.

Persists JSON-serialisable values by key, one key per concern: the tick
log, each quota state, each cached result and the cache version.
"""
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..shared.errors import ExternalResourceUnavailable


logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Durable key-value storage used by HistoryStore and SessionState."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serialisable value under key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key (no-op if absent)."""

    @abstractmethod
    def keys(self) -> List[str]:
        pass


class MemoryStore(KeyValueStore):
    """Process-local store. Values are round-tripped through JSON so callers never share mutable state."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class JsonFileStore(KeyValueStore):
    """
    Single JSON document on disk holding every key.

    The whole document is rewritten on each set/delete. Read failures
    (missing file, corrupt JSON) start from an empty store; write failures
    raise ExternalResourceUnavailable.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the file store.

        Args:
            path: Path to the JSON document (created on first write)
        """
        self.path = Path(path)
        self._data: Dict[str, Any] = {}
        self._load()

    def _load(self):
        """Load document from disk."""
        if not self.path.exists():
            logger.info(f"Store file {self.path} does not exist, starting fresh")
            return

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            self._data = data
            logger.info(f"Loaded store from {self.path}: {len(self._data)} keys")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load store from {self.path}: {e}")
            self._data = {}

    def _save(self):
        """Write document to disk (tmp file + rename)."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w') as f:
                json.dump(self._data, f, indent=2)
            tmp_path.replace(self.path)
            logger.debug(f"Saved store to {self.path}")
        except OSError as e:
            logger.error(f"Failed to save store to {self.path}: {e}")
            raise ExternalResourceUnavailable("storage", str(e)) from e

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        # Round-trip so later mutation of value by the caller cannot leak in
        self._data[key] = json.loads(json.dumps(value))
        self._save()

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()

    def keys(self) -> List[str]:
        return list(self._data.keys())
