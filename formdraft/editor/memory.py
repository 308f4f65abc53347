"""Headless editor that keeps its document as a dict."""

import copy
import json
from typing import Any, Dict, List, Optional

from formdraft.editor.base import FormEditor
from formdraft.fragments.codec import default_form


class InMemoryEditor(FormEditor):
    """Editor stand-in for scripts and tests.

    ``document`` is what the author currently sees; ``loads`` records every
    fragment pushed into the editor, in order.
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self.document: Dict[str, Any] = document if document is not None else default_form()
        self.loads: List[str] = []

    def get_snapshot(self) -> Any:
        return copy.deepcopy(self.document)

    def load_snapshot(self, fragment: str) -> None:
        parsed = json.loads(fragment)
        if not isinstance(parsed, dict):
            raise ValueError("editor documents must be JSON objects")
        self.loads.append(fragment)
        self.document = parsed

    @property
    def last_loaded(self) -> Optional[str]:
        return self.loads[-1] if self.loads else None
