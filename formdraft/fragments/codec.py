"""Snapshot codec: editor snapshots to encoded fragments and back.

The external editor may hand back a JSON string, a plain dict, or an object
graph with cycles, callables and other non-data members. ``encode`` turns
any of these into a JSON string that ``decode`` can always parse again; when
nothing can be salvaged the result is the empty default form.
"""

import asyncio
import copy
import dataclasses
import json
import math
from enum import Enum
from types import ModuleType
from typing import Any, Dict, Mapping, Optional

from formdraft.exceptions import FragmentDecodeError
from formdraft.logger import Logger, session_logger

# Empty document understood by the visual editor.
DEFAULT_FORM: Dict[str, Any] = {
    "version": "1",
    "errorType": "RsErrorMessage",
    "form": {
        "key": "Screen",
        "type": "Screen",
        "props": {},
        "children": [],
    },
    "localization": {},
    "languages": [
        {
            "code": "en",
            "dialect": "US",
            "name": "English",
            "description": "American English",
            "bidi": "ltr",
        }
    ],
    "defaultLanguage": "en-US",
}


def default_form() -> Dict[str, Any]:
    """Fresh deep copy of the empty document."""
    return copy.deepcopy(DEFAULT_FORM)


def default_fragment() -> str:
    return json.dumps(DEFAULT_FORM)


class _Drop:
    """Marker for values removed from a snapshot copy."""


_DROP = _Drop()


def _is_non_data(value: Any) -> bool:
    return isinstance(value, (ModuleType, type, bytes, bytearray)) or callable(value)


def _object_data(value: Any) -> Optional[Dict[str, Any]]:
    """Expose the data members of an arbitrary object, or None."""
    model_dump = getattr(value, "model_dump", None)
    if callable(model_dump):
        return model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if hasattr(value, "__dict__"):
        return {k: v for k, v in vars(value).items() if not k.startswith("_")}
    return None


class SnapshotCodec:
    """Encode/decode editor snapshots with a reentrancy guard.

    One codec instance serves one session. While an encode is running the
    codec is ``busy``; nested encodes (triggered from inside the editor's own
    serialization) return the last good fragment instead of recursing. The
    busy flag is released on the next event-loop tick so a caller never
    observes half of a serialization pass.
    """

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or session_logger
        self._busy = False
        self._last_good = default_fragment()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def last_good(self) -> str:
        return self._last_good

    async def wait_idle(self) -> None:
        """Yield to the loop until any in-flight encode has been released."""
        while self._busy:
            await asyncio.sleep(0)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encode(self, raw: Any) -> str:
        """Return a decodable JSON string for ``raw``. Never raises."""
        if self._busy:
            self.logger.debug("Nested encode short-circuited")
            return self._last_good

        self._busy = True
        try:
            fragment = self._encode(raw)
            self._last_good = fragment
            return fragment
        finally:
            self._schedule_release()

    def decode(self, fragment: str) -> Any:
        """Parse an encoded fragment.

        Raises:
            FragmentDecodeError: If ``fragment`` is not a JSON string
        """
        if not isinstance(fragment, str):
            raise FragmentDecodeError(f"expected str, got {type(fragment).__name__}")
        try:
            return json.loads(fragment)
        except ValueError as exc:
            raise FragmentDecodeError(str(exc), preview=fragment) from exc

    def is_decodable(self, fragment: Any) -> bool:
        try:
            self.decode(fragment)
        except FragmentDecodeError:
            return False
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _encode(self, raw: Any) -> str:
        if isinstance(raw, str):
            try:
                parsed = self.decode(raw)
            except FragmentDecodeError:
                self.logger.warning("Editor returned malformed JSON, using default form")
                return default_fragment()
            if isinstance(parsed, dict):
                return raw
            self.logger.warning(
                "Editor returned JSON without a top-level object, using default form",
                json_type=type(parsed).__name__,
            )
            return default_fragment()

        strategies = (
            ("plain_copy", lambda: self._copy(raw, None)),
            ("cycle_tracking_copy", lambda: self._copy(raw, frozenset())),
        )
        for name, strategy in strategies:
            try:
                data = strategy()
                text = json.dumps(data, allow_nan=False)
            except Exception as exc:
                self.logger.debug("Snapshot copy strategy failed", strategy=name, error=str(exc))
                continue
            # The editor only accepts an object at the top level.
            if not isinstance(data, dict):
                break
            if self.is_decodable(text):
                return text

        self.logger.warning(
            "Snapshot could not be encoded, using default form",
            snapshot_type=type(raw).__name__,
        )
        return default_fragment()

    def _copy(self, value: Any, ancestors: Optional[frozenset]) -> Any:
        """Deep-copy ``value`` as JSON data.

        With ``ancestors`` set, back-edges to an object on the current path
        are dropped and non-finite floats become null. Without it the copy
        recurses blindly and cycles surface as RecursionError.
        """
        if value is None or isinstance(value, (bool, int, str)):
            return value
        if isinstance(value, float):
            if ancestors is not None and not math.isfinite(value):
                return None
            return value
        if isinstance(value, Enum):
            return self._copy(value.value, ancestors)
        if _is_non_data(value):
            return _DROP

        if ancestors is not None:
            marker = id(value)
            if marker in ancestors:
                return _DROP
            ancestors = ancestors | {marker}

        if isinstance(value, Mapping):
            result = {}
            for key, item in value.items():
                copied = self._copy(item, ancestors)
                if copied is not _DROP:
                    result[str(key)] = copied
            return result

        if isinstance(value, (list, tuple, set, frozenset)):
            items = (self._copy(item, ancestors) for item in value)
            return [item for item in items if item is not _DROP]

        data = _object_data(value)
        if data is None:
            return _DROP
        return self._copy(data, ancestors)

    def _schedule_release(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._busy = False
            return
        loop.call_soon(self._release)

    def _release(self) -> None:
        self._busy = False
