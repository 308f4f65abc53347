"""Section management package."""
from formdraft.sections.store import (
    DEFAULT_SECTION_ID,
    DEFAULT_SECTION_NAME,
    SectionStore,
    default_section,
    new_section_id,
)

__all__ = [
    "SectionStore",
    "default_section",
    "new_section_id",
    "DEFAULT_SECTION_ID",
    "DEFAULT_SECTION_NAME",
]
