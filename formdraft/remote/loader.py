"""Load an existing template into session state, by entry mode."""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from formdraft.exceptions import RemoteLoadError
from formdraft.fragments.codec import default_form
from formdraft.logger import Logger, session_logger
from formdraft.remote.base import CustomerDirectory, DocumentApi
from formdraft.sections.store import DEFAULT_SECTION_ID, DEFAULT_SECTION_NAME, new_section_id
from formdraft.validation.document_models import (
    DocumentMetadata,
    EntryMode,
    EntryModeKind,
    FormType,
    RemoteDocument,
    RemoteSection,
    Section,
)


@dataclass
class LoadedDocument:
    """Result of a remote load, ready to be applied to a session."""

    metadata: DocumentMetadata
    sections: List[Section] = field(default_factory=list)

    @property
    def form_type(self) -> FormType:
        return self.metadata.form_type


class RemoteLoader:
    """Fetches a template and maps it to metadata plus sections.

    A load for a given ``(id, mode)`` runs at most once per loader: repeated
    or concurrent calls share the same task and its outcome.
    """

    def __init__(
        self,
        api: DocumentApi,
        customers: Optional[CustomerDirectory] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self.api = api
        self.customers = customers
        self.logger = logger or session_logger
        self._tasks: Dict[Tuple[str, EntryModeKind], "asyncio.Task[LoadedDocument]"] = {}
        self.last_loaded_id: Optional[str] = None

    async def load(self, mode: EntryMode) -> LoadedDocument:
        """
        Load the document named by ``mode``.

        Raises:
            ValueError: If ``mode`` is create mode
            RemoteLoadError: If the fetch fails or returns nothing usable
        """
        if mode.is_create:
            raise ValueError("create mode has no remote document to load")

        key = (mode.existing_id, mode.kind)
        task = self._tasks.get(key)
        if task is None:
            self.last_loaded_id = mode.existing_id
            task = asyncio.ensure_future(self._load(mode))
            self._tasks[key] = task
        else:
            self.logger.debug("Remote load already requested", document_id=mode.existing_id)
        return await task

    async def _load(self, mode: EntryMode) -> LoadedDocument:
        document_id = mode.existing_id
        try:
            raw = await self.api.fetch(document_id)
        except Exception as exc:
            self.logger.error("Failed to fetch document", document_id=document_id, error=str(exc))
            raise RemoteLoadError(document_id, exc) from exc
        if not raw:
            raise RemoteLoadError(document_id)

        try:
            record = RemoteDocument.model_validate(raw)
        except PydanticValidationError as exc:
            self.logger.error("Fetched document is malformed", document_id=document_id)
            raise RemoteLoadError(document_id, exc) from exc

        metadata = DocumentMetadata(template_name=record.template_name, version=record.version)
        if mode.is_edit:
            metadata.sheet_url = record.sheet_url or ""
            metadata.description = record.description or ""
            if record.status is not None:
                metadata.status = record.status
            metadata.customer_id = record.customer_id
            metadata.customer_name = record.customer_name or ""
            if not metadata.customer_name and record.customer_id is not None:
                metadata.customer_name = await self._lookup_customer_name(record.customer_id)

        form_type, sections = self._expand(record.form_json)
        metadata.form_type = form_type

        if mode.is_duplicate:
            # The author must pick a new name for the copy.
            metadata.template_name = ""

        self.logger.info(
            "Document loaded",
            document_id=document_id,
            mode=mode.kind.value,
            form_type=form_type.value,
            sections=len(sections),
        )
        return LoadedDocument(metadata=metadata, sections=sections)

    async def _lookup_customer_name(self, customer_id: Any) -> str:
        if self.customers is None:
            return ""
        try:
            name = await self.customers.get_customer_name(customer_id)
        except Exception as exc:
            self.logger.warning(
                "Customer name lookup failed", customer_id=customer_id, error=str(exc)
            )
            return ""
        return name or ""

    def _parse_section(self, entry: Any) -> RemoteSection:
        if not isinstance(entry, dict):
            return RemoteSection()
        try:
            return RemoteSection.model_validate(entry)
        except PydanticValidationError as exc:
            bad_fields = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
            kept = {k: v for k, v in entry.items() if k not in bad_fields}
            self.logger.warning(
                "Remote section metadata malformed, using defaults for some fields",
                fields=sorted(bad_fields),
            )
            return RemoteSection.model_validate(kept)

    def _expand(self, form_json: Any) -> Tuple[FormType, List[Section]]:
        if isinstance(form_json, str):
            try:
                form_json = json.loads(form_json)
            except ValueError:
                self.logger.warning("Remote form_json is not valid JSON, using default form")
                form_json = None

        if isinstance(form_json, dict) and isinstance(form_json.get("sections"), list):
            parsed = [self._parse_section(entry) for entry in form_json["sections"]]
            taken = {remote.section_id for remote in parsed if remote.section_id}
            used = set()
            sections = []
            for position, remote in enumerate(parsed, start=1):
                section_id = remote.section_id
                if not section_id:
                    section_id = f"section_{position}"
                    if section_id in taken:
                        section_id = new_section_id(taken | used)
                elif section_id in used:
                    section_id = new_section_id(taken | used)
                    self.logger.warning(
                        "Remote section id repeated, assigning a fresh id",
                        section_id=remote.section_id,
                        new_section_id=section_id,
                    )
                used.add(section_id)
                content = remote.form_json if remote.form_json is not None else default_form()
                sections.append(
                    Section(
                        section_id=section_id,
                        section_name=remote.section_name or f"Section {position}",
                        order=remote.order if remote.order and remote.order > 0 else position,
                        content_fragment=json.dumps(content),
                    )
                )
            if sections:
                return FormType.MULTI_STEP, sections
            form_json = None

        content = form_json if isinstance(form_json, dict) else default_form()
        return FormType.SINGLE, [
            Section(
                section_id=DEFAULT_SECTION_ID,
                section_name=DEFAULT_SECTION_NAME,
                order=1,
                content_fragment=json.dumps(content),
            )
        ]
