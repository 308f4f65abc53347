"""File-based key/value storage

Stores each key as ``<key>.json`` under a base directory. Writes go to a
temporary file first and are moved into place so a crash mid-write never
leaves a truncated record behind.
"""

import os
import re
from pathlib import Path
from typing import List, Optional

from formdraft.config import get_default_drafts_dir
from formdraft.exceptions import StorageError
from formdraft.logger import Logger, session_logger
from formdraft.storage.base import KeyValueStorage

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


class FileKeyValueStorage(KeyValueStorage):
    """File-backed storage, one file per key"""

    def __init__(self, base_dir: Optional[str] = None, logger: Optional[Logger] = None):
        """
        Initialize file storage

        Args:
            base_dir: Directory holding the files. If None, uses the configured drafts dir
            logger: Logger instance
        """
        self.base_dir = Path(base_dir or get_default_drafts_dir())
        self.logger = logger or session_logger
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error("Failed to create storage directory", error=str(e))
            raise StorageError(f"Failed to create storage directory: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read '{key}': {e}", details={"path": str(path)}) from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write '{key}': {e}", details={"path": str(path)}) from e
        self.logger.debug("Storage item written", key=key, path=str(path), size=len(value))

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove '{key}': {e}", details={"path": str(path)}) from e

    def list_keys(self) -> List[str]:
        return sorted(p.stem for p in self.base_dir.glob("*.json") if p.is_file())

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key or ""):
            raise StorageError(f"Invalid storage key '{key}'", code="STORAGE_INVALID_KEY")
        return self.base_dir / f"{key}.json"
