"""Pydantic models shared across the authoring session core."""

from formdraft.validation.document_models import (
    Document,
    DocumentMetadata,
    DocumentStatus,
    DraftRecord,
    EntryMode,
    EntryModeKind,
    FormType,
    RemoteDocument,
    RemoteSection,
    SaveDialogState,
    SavePayload,
    Section,
    SectionPayload,
)

__all__ = [
    "Document",
    "DocumentMetadata",
    "DocumentStatus",
    "DraftRecord",
    "EntryMode",
    "EntryModeKind",
    "FormType",
    "RemoteDocument",
    "RemoteSection",
    "SaveDialogState",
    "SavePayload",
    "Section",
    "SectionPayload",
]
