"""Custom exceptions for the form authoring session core.

All exceptions carry a ``code``, ``message`` and ``details`` so hosts can map
them to user-facing messages without string matching.
"""

from formdraft.exceptions.base import (
    FormDraftError,
    ValidationError,
    ResourceNotFoundError,
    ConfigurationError,
    StorageError,
)
from formdraft.exceptions.fragment import FragmentDecodeError
from formdraft.exceptions.section import (
    SectionError,
    InvalidSectionNameError,
    LastSectionError,
    SectionNotFoundError,
)
from formdraft.exceptions.remote import RemoteApiError, RemoteLoadError, RemoteSubmitError
from formdraft.exceptions.session import (
    SessionError,
    InvalidSessionStateError,
    SubmissionValidationError,
)

__all__ = [
    "FormDraftError",
    "ValidationError",
    "ResourceNotFoundError",
    "ConfigurationError",
    "StorageError",
    "FragmentDecodeError",
    "SectionError",
    "InvalidSectionNameError",
    "LastSectionError",
    "SectionNotFoundError",
    "RemoteApiError",
    "RemoteLoadError",
    "RemoteSubmitError",
    "SessionError",
    "InvalidSessionStateError",
    "SubmissionValidationError",
]
