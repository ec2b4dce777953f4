"""JSON file backed key/value store."""

import json
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Union

import structlog

from .base import KeyValueStore

logger = structlog.get_logger()


class JsonFileStore(KeyValueStore):
    """Keeps every key in one JSON document on disk.

    The whole document is rewritten on each change: written to a temporary
    sibling file first and then renamed over the original, so a crash never
    leaves a half-written store behind.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = Lock()
        self._data: Dict[str, str] = self._load()
        logger.info("store_initialized", backend="file", path=str(self.path), keys=len(self._data))

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.error("store_load_error", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.error("store_load_error", path=str(self.path), error="not a JSON object")
            return {}
        return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in data.items()}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            temp_path.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()

    def items(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._flush()

    def update(self, values: Dict[str, str]) -> None:
        with self._lock:
            self._data.update(values)
            self._flush()
