"""Base interface for durable key/value storage

Mirrors the browser storage contract the draft slot was designed around:
string values under string keys, with ``None`` for a missing key.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorage(ABC):
    """Abstract base class for key/value storage implementations"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under ``key``

        Returns:
            The stored string or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store ``value`` under ``key``, replacing any previous value

        Raises:
            StorageError: If the write fails (for example a full quota)
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove ``key``. Removing an absent key is not an error."""
        pass
