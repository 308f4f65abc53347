"""Contract of the external visual form editor.

The editor is a black box: the session only asks it for a snapshot of what
it currently shows and hands it an encoded fragment to show next.
"""

from abc import ABC, abstractmethod
from typing import Any


class FormEditor(ABC):
    """Abstract base class for editor adapters"""

    @abstractmethod
    def get_snapshot(self) -> Any:
        """
        Return the editor's current document

        May be a JSON string or an arbitrary object graph, including graphs
        with cycles or non-data members. The snapshot codec normalizes it.
        """
        pass

    @abstractmethod
    def load_snapshot(self, fragment: str) -> None:
        """
        Replace the editor's document with ``fragment``

        Raises:
            Exception: Any error on malformed input; callers must catch
        """
        pass
