"""Session-related exceptions."""

from typing import Any, Dict, List, Optional

from formdraft.exceptions.base import ValidationError


class SessionError(ValidationError):
    """Base exception for session-related errors."""

    pass


class InvalidSessionStateError(SessionError):
    """Raised when session is in an invalid state for the requested operation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="INVALID_SESSION_STATE", message=message, details=details or {})


class SubmissionValidationError(SessionError):
    """Raised when required identity fields are missing at submit time."""

    def __init__(self, field_errors: Dict[str, List[str]]):
        fields = ", ".join(sorted(field_errors))
        super().__init__(
            code="SUBMISSION_INVALID",
            message=f"Missing required fields: {fields}",
            details={"field_errors": field_errors},
        )
        self.field_errors = field_errors
