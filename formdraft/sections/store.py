"""In-memory ordered collection of document sections."""

import random
import time
from typing import Iterable, Iterator, List, Optional

from formdraft.exceptions import (
    InvalidSectionNameError,
    LastSectionError,
    SectionNotFoundError,
)
from formdraft.fragments.codec import SnapshotCodec, default_fragment
from formdraft.logger import Logger, session_logger
from formdraft.validation.document_models import Section

DEFAULT_SECTION_ID = "section_1"
DEFAULT_SECTION_NAME = "Section 1"


def default_section() -> Section:
    return Section(
        section_id=DEFAULT_SECTION_ID,
        section_name=DEFAULT_SECTION_NAME,
        order=1,
        content_fragment=default_fragment(),
    )


def new_section_id(taken: Iterable[str] = ()) -> str:
    """Return a fresh ``section_<ms>_<hex>`` id not present in ``taken``."""
    existing = set(taken)
    while True:
        candidate = f"section_{int(time.time() * 1000)}_{random.randrange(16**6):06x}"
        if candidate not in existing:
            return candidate


class SectionStore:
    """Ordered sections with ``order`` kept as the contiguous range 1..N.

    ``order`` is never patched in place: after every structural change it is
    rebuilt from each section's position in the list.
    """

    def __init__(
        self,
        sections: Optional[Iterable[Section]] = None,
        codec: Optional[SnapshotCodec] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self.logger = logger or session_logger
        self.codec = codec or SnapshotCodec(logger=self.logger)
        self._sections: List[Section] = []
        self.replace(sections or [])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> Iterator[Section]:
        return iter(self.to_list())

    def __contains__(self, section_id: object) -> bool:
        return any(s.section_id == section_id for s in self._sections)

    @property
    def ids(self) -> List[str]:
        return [s.section_id for s in self._sections]

    def first(self) -> Section:
        return self._sections[0].model_copy()

    def get(self, section_id: str) -> Section:
        """Return a copy of a section.

        Raises:
            SectionNotFoundError: If no section has ``section_id``
        """
        return self._sections[self._index(section_id)].model_copy()

    def to_list(self) -> List[Section]:
        return [s.model_copy() for s in self._sections]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, name: str, content_fragment: Optional[str] = None) -> str:
        """Append a section and return its new id.

        Raises:
            InvalidSectionNameError: If ``name`` is blank
        """
        clean = (name or "").strip()
        if not clean:
            raise InvalidSectionNameError(name)

        section_id = self._new_id()
        self._sections.append(
            Section(
                section_id=section_id,
                section_name=clean,
                order=len(self._sections) + 1,
                content_fragment=content_fragment or default_fragment(),
            )
        )
        self._renumber()
        self.logger.debug("Section added", section_id=section_id, count=len(self._sections))
        return section_id

    def remove(self, section_id: str) -> None:
        """Remove a section and renumber the rest.

        Raises:
            SectionNotFoundError: If no section has ``section_id``
            LastSectionError: If it is the only section left
        """
        index = self._index(section_id)
        if len(self._sections) == 1:
            raise LastSectionError(section_id)
        del self._sections[index]
        self._renumber()
        self.logger.debug("Section removed", section_id=section_id, count=len(self._sections))

    def rename(self, section_id: str, new_name: str) -> bool:
        """Rename a section. Blank names are ignored and return False."""
        index = self._index(section_id)
        clean = (new_name or "").strip()
        if not clean:
            return False
        self._sections[index] = self._sections[index].model_copy(update={"section_name": clean})
        return True

    def set_content(self, section_id: str, fragment: str) -> None:
        if not isinstance(fragment, str):
            raise TypeError(f"fragment must be str, got {type(fragment).__name__}")
        index = self._index(section_id)
        self._sections[index] = self._sections[index].model_copy(
            update={"content_fragment": fragment}
        )

    def move(self, section_id: str, new_position: int) -> None:
        """Move a section to a 1-based position, clamped to the list bounds."""
        index = self._index(section_id)
        section = self._sections.pop(index)
        target = min(max(new_position, 1), len(self._sections) + 1) - 1
        self._sections.insert(target, section)
        self._renumber()

    def reduce_to_single(self) -> Section:
        """Keep only the first section (by order) and discard the rest."""
        kept = self._sections[0]
        dropped = len(self._sections) - 1
        self._sections = [kept]
        self._renumber()
        if dropped:
            self.logger.info("Sections discarded for single form", dropped=dropped)
        return self.first()

    def replace(self, sections: Iterable[Section]) -> None:
        """Load a whole list, sorted by incoming order then renumbered.

        Fragments that do not decode are replaced with the default form.
        A section whose id is already taken keeps its content under a fresh
        id. An empty list restores the single default section.
        """
        incoming = sorted(sections, key=lambda s: s.order)
        taken = {s.section_id for s in incoming}
        seen = set()
        cleaned: List[Section] = []
        for section in incoming:
            if section.section_id in seen:
                fresh_id = new_section_id(taken)
                self.logger.warning(
                    "Duplicate section id reassigned",
                    section_id=section.section_id,
                    new_section_id=fresh_id,
                )
                taken.add(fresh_id)
                section = section.model_copy(update={"section_id": fresh_id})
            seen.add(section.section_id)
            fragment = section.content_fragment
            if not self.codec.is_decodable(fragment):
                self.logger.warning(
                    "Section fragment invalid, using default form",
                    section_id=section.section_id,
                )
                fragment = default_fragment()
            cleaned.append(section.model_copy(update={"content_fragment": fragment}))

        self._sections = cleaned or [default_section()]
        self._renumber()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _index(self, section_id: str) -> int:
        for idx, section in enumerate(self._sections):
            if section.section_id == section_id:
                return idx
        raise SectionNotFoundError(section_id)

    def _renumber(self) -> None:
        self._sections = [
            s if s.order == position else s.model_copy(update={"order": position})
            for position, s in enumerate(self._sections, start=1)
        ]

    def _new_id(self) -> str:
        return new_section_id(self.ids)
