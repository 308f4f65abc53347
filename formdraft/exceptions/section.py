"""Section-related exceptions."""

from typing import Any, Dict, Optional

from formdraft.exceptions.base import ResourceNotFoundError, ValidationError


class SectionError(ValidationError):
    """Base exception for structural section edits that were refused."""

    pass


class InvalidSectionNameError(SectionError):
    """Raised when a section name is empty or whitespace-only."""

    def __init__(self, name: str):
        super().__init__(
            code="INVALID_SECTION_NAME",
            message="Section name must not be empty",
            details={"name": name},
        )
        self.name = name


class LastSectionError(SectionError):
    """Raised when removing the only remaining section."""

    def __init__(self, section_id: str):
        super().__init__(
            code="LAST_SECTION",
            message="Cannot delete the last section",
            details={"section_id": section_id},
        )
        self.section_id = section_id


class SectionNotFoundError(ResourceNotFoundError):
    """Raised when a section id is not present in the store."""

    def __init__(self, section_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code="SECTION_NOT_FOUND",
            message=f"Section '{section_id}' not found",
            details=details or {},
        )
        self.section_id = section_id
