"""In-memory key/value store."""

from threading import Lock
from typing import Dict, Optional

import structlog

from .base import KeyValueStore

logger = structlog.get_logger()


class InMemoryStore(KeyValueStore):
    """Thread-safe dictionary-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = Lock()
        self._data: Dict[str, str] = dict(initial or {})
        logger.info("store_initialized", backend="memory", keys=len(self._data))

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def items(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
