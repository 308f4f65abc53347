"""In-memory key/value storage, scoped to one process."""

from typing import Dict, List, Optional

from formdraft.exceptions import StorageError
from formdraft.storage.base import KeyValueStorage


class MemoryKeyValueStorage(KeyValueStorage):
    """Dict-backed storage with an optional byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self._items: Dict[str, str] = {}
        self.quota_bytes = quota_bytes
        self.write_count = 0

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"value for '{key}' must be str", code="STORAGE_INVALID_VALUE")
        if self.quota_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self._items.items() if k != key)
            if others + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageError(
                    f"quota exceeded writing '{key}'",
                    code="STORAGE_QUOTA_EXCEEDED",
                    details={"quota_bytes": self.quota_bytes},
                )
        self._items[key] = value
        self.write_count += 1

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)
