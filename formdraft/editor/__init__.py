"""External editor adapters."""
from formdraft.editor.base import FormEditor
from formdraft.editor.memory import InMemoryEditor

__all__ = ["FormEditor", "InMemoryEditor"]
