"""Debounced persistence of the create-mode draft.

There is one draft slot per storage (one well-known key), not one per
document. Writes are debounced on the running event loop; storage failures
are logged and never reach the author.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from formdraft.config import Config
from formdraft.logger import Logger, session_logger
from formdraft.storage.base import KeyValueStorage
from formdraft.validation.document_models import DraftRecord

DraftProvider = Callable[[], DraftRecord]


def _never_suspended() -> bool:
    return False


class DraftPersistence:
    """Save/restore/clear the single draft slot.

    Args:
        storage: Durable key/value store
        key: Storage key of the draft slot
        debounce_seconds: Quiet period before a scheduled write runs
        is_suspended: Predicate checked before every write; the session
            controller returns True while it is restoring
        logger: Logger instance
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: Optional[str] = None,
        debounce_seconds: Optional[float] = None,
        is_suspended: Callable[[], bool] = _never_suspended,
        logger: Optional[Logger] = None,
    ) -> None:
        self.storage = storage
        self.key = key or Config.get_draft_key()
        self.debounce_seconds = (
            Config.get_draft_debounce_seconds() if debounce_seconds is None else debounce_seconds
        )
        self.is_suspended = is_suspended
        self.logger = logger or session_logger
        self.enabled = True
        self._timer: Optional[asyncio.TimerHandle] = None
        self._provider: Optional[DraftProvider] = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def schedule_save(self, provider: DraftProvider) -> None:
        """Write ``provider()`` once no new request arrives for the debounce delay."""
        if not self._writable():
            return
        self._provider = provider
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write(provider)
            return
        self._timer = loop.call_later(self.debounce_seconds, self._fire)

    def flush(self, provider: Optional[DraftProvider] = None) -> bool:
        """Write immediately, skipping the timer. Returns True if a write succeeded."""
        provider = provider or self._provider
        self.cancel()
        if provider is None or not self._writable():
            return False
        return self._write(provider)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        if self._provider is not None and self._writable():
            self._write(self._provider)

    def _writable(self) -> bool:
        return self.enabled and not self.is_suspended()

    def _write(self, provider: DraftProvider) -> bool:
        try:
            record = provider()
            self.storage.set_item(self.key, record.model_dump_json())
        except Exception as exc:
            self.logger.warning("Failed to save draft", key=self.key, error=str(exc))
            return False
        self.logger.debug("Draft saved", key=self.key, sections=len(record.sections))
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self) -> Optional[DraftRecord]:
        """Return the stored draft, or None if absent or unreadable."""
        try:
            raw = self.storage.get_item(self.key)
        except Exception as exc:
            self.logger.warning("Failed to read draft", key=self.key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            record = DraftRecord.model_validate_json(raw)
        except PydanticValidationError as exc:
            self.logger.warning(
                "Stored draft is invalid, ignoring", key=self.key, errors=exc.error_count()
            )
            return None
        self.logger.info("Draft loaded", key=self.key, saved_at=record.saved_at)
        return record

    def clear(self) -> None:
        self.cancel()
        self._provider = None
        try:
            self.storage.remove_item(self.key)
        except Exception as exc:
            self.logger.warning("Failed to clear draft", key=self.key, error=str(exc))
            return
        self.logger.debug("Draft cleared", key=self.key)
