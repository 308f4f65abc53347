"""Base exception classes for formdraft.

Every error carries a machine-readable ``code``, a human-readable
``message`` and a ``details`` dict so hosts can decide how to surface it.
"""

from typing import Any, Dict, Optional


class FormDraftError(Exception):
    """Root of the formdraft exception hierarchy."""

    default_code = "FORMDRAFT_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(FormDraftError):
    """Raised when input fails validation."""

    default_code = "VALIDATION_ERROR"


class ResourceNotFoundError(FormDraftError):
    """Raised when a referenced resource does not exist."""

    default_code = "RESOURCE_NOT_FOUND"


class ConfigurationError(FormDraftError):
    """Raised when configuration is invalid."""

    default_code = "CONFIGURATION_ERROR"


class StorageError(FormDraftError):
    """Raised by storage backends when a read or write fails."""

    default_code = "STORAGE_ERROR"


__all__ = [
    "FormDraftError",
    "ValidationError",
    "ResourceNotFoundError",
    "ConfigurationError",
    "StorageError",
]
