"""Exceptions raised around the remote template API."""

from typing import Any, Dict, List, Optional

from formdraft.exceptions.base import FormDraftError


class RemoteApiError(FormDraftError):
    """Transport-level failure reported by the document API client.

    ``status`` is the HTTP status (0 for network failures) and
    ``field_errors`` holds Django-style ``{field: [messages]}`` validation
    errors when the backend returned any.
    """

    default_code = "REMOTE_API_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: int = 0,
        field_errors: Optional[Dict[str, List[str]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)
        self.status = status
        self.field_errors = field_errors or {}


class RemoteLoadError(FormDraftError):
    """Raised when an existing document cannot be fetched. Fatal to the session."""

    default_code = "REMOTE_LOAD_FAILED"

    def __init__(self, document_id: str, cause: Optional[Exception] = None):
        details: Dict[str, Any] = {"document_id": document_id}
        if isinstance(cause, RemoteApiError):
            details["status"] = cause.status
            details["upstream_code"] = cause.code
        super().__init__(message=f"Failed to load document '{document_id}'", details=details)
        self.document_id = document_id


class RemoteSubmitError(FormDraftError):
    """Raised when create/update fails. Recoverable; the dialog stays open."""

    default_code = "REMOTE_SUBMIT_FAILED"

    def __init__(
        self,
        message: str,
        field_errors: Optional[Dict[str, List[str]]] = None,
        status: int = 0,
    ):
        super().__init__(
            message=message,
            details={"status": status, "field_errors": field_errors or {}},
        )
        self.field_errors = field_errors or {}
        self.status = status
