"""Fragment codec exceptions."""
from typing import Optional

from formdraft.exceptions.base import FormDraftError


class FragmentDecodeError(FormDraftError):
    """Raised when an encoded fragment cannot be parsed back into a document."""

    default_code = "FRAGMENT_DECODE_FAILED"

    def __init__(self, reason: str, preview: Optional[str] = None):
        details = {"reason": reason}
        if preview is not None:
            details["preview"] = preview[:80]
        super().__init__(message=f"Fragment could not be decoded: {reason}", details=details)
        self.reason = reason
