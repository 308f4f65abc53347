"""Local draft persistence for create-mode sessions."""
from formdraft.drafts.persistence import DraftPersistence, DraftProvider

__all__ = ["DraftPersistence", "DraftProvider"]
