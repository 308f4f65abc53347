"""Durable key/value storage backends for the draft slot."""

from formdraft.storage.base import KeyValueStorage
from formdraft.storage.file_storage import FileKeyValueStorage
from formdraft.storage.memory_storage import MemoryKeyValueStorage

__all__ = ["KeyValueStorage", "FileKeyValueStorage", "MemoryKeyValueStorage"]
