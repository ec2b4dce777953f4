"""Base key/value store interface."""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class KeyValueStore(ABC):
    """Abstract synchronous string key/value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for a key, or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key if present."""
        pass

    @abstractmethod
    def items(self) -> Dict[str, str]:
        """Snapshot of every stored key and value."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete everything."""
        pass

    def update(self, values: Dict[str, str]) -> None:
        """Store several values."""
        for key, value in values.items():
            self.set(key, value)
