"""Session controller for the form authoring screen.

Owns the document being authored, the pointer to the section the external
editor is showing, and the choice between the local draft and the remote
template as the source of truth. Operations that move content between the
editor and the section store run one at a time under a lock, always pulling
from the editor before pushing into it.
"""

import asyncio
import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from formdraft.drafts.persistence import DraftPersistence
from formdraft.editor.base import FormEditor
from formdraft.exceptions import (
    FragmentDecodeError,
    InvalidSessionStateError,
    RemoteApiError,
    RemoteLoadError,
    RemoteSubmitError,
    SubmissionValidationError,
    ValidationError,
)
from formdraft.fragments.codec import SnapshotCodec, default_form
from formdraft.logger import Logger, session_logger
from formdraft.notifications import Notifier
from formdraft.remote.base import CustomerDirectory, DocumentApi
from formdraft.remote.loader import RemoteLoader
from formdraft.sections.store import SectionStore
from formdraft.sessions.settings import SessionSettings
from formdraft.storage.base import KeyValueStorage
from formdraft.storage.memory_storage import MemoryKeyValueStorage
from formdraft.validation.document_models import (
    EDITABLE_METADATA_FIELDS,
    Document,
    DocumentMetadata,
    DraftRecord,
    EntryMode,
    FormType,
    SaveDialogState,
    SavePayload,
    Section,
)

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]
ExitCallback = Callable[[str], None]


class SessionState(str, Enum):
    INITIALIZING = "initializing"
    RESTORING = "restoring"
    LOADING = "loading"
    READY = "ready"
    SAVING = "saving"
    CLOSED = "closed"


_TRANSITIONS = {
    SessionState.INITIALIZING: {
        SessionState.RESTORING,
        SessionState.LOADING,
        SessionState.READY,
        SessionState.CLOSED,
    },
    SessionState.RESTORING: {SessionState.READY, SessionState.CLOSED},
    SessionState.LOADING: {SessionState.READY, SessionState.CLOSED},
    SessionState.READY: {SessionState.SAVING, SessionState.CLOSED},
    SessionState.SAVING: {SessionState.READY, SessionState.CLOSED},
    SessionState.CLOSED: set(),
}

EXIT_SUBMITTED = "submitted"
EXIT_LOAD_FAILED = "load_failed"


class SessionController:
    """State machine tying editor, sections, draft and remote together."""

    def __init__(
        self,
        entry_mode: EntryMode,
        editor: FormEditor,
        api: DocumentApi,
        storage: Optional[KeyValueStorage] = None,
        drafts: Optional[DraftPersistence] = None,
        loader: Optional[RemoteLoader] = None,
        customers: Optional[CustomerDirectory] = None,
        codec: Optional[SnapshotCodec] = None,
        notifier: Optional[Notifier] = None,
        confirm: Optional[ConfirmCallback] = None,
        on_exit: Optional[ExitCallback] = None,
        settings: Optional[SessionSettings] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        """
        Initialize the session controller.

        Args:
            entry_mode: Why the session started; fixed for its lifetime
            editor: Adapter around the external visual editor
            api: Remote create/update/fetch of templates
            storage: Durable store for the draft slot (ignored if drafts given)
            drafts: Draft persistence; built over ``storage`` when omitted
            loader: Remote loader; built over ``api`` when omitted
            customers: Customer name lookup used by the default loader
            codec: Snapshot codec shared by the session
            notifier: Receives user-facing messages
            confirm: Asked before destructive actions; declining cancels them
            on_exit: Called with a reason when the session leaves the screen
            settings: Session behaviour settings
            logger: Logger instance
        """
        self.entry_mode = entry_mode
        self.editor = editor
        self.api = api
        self.settings = settings or SessionSettings()
        self.logger = logger or session_logger
        self.codec = codec or SnapshotCodec(logger=self.logger)
        self.notifier = notifier or Notifier()
        self.confirm = confirm
        self.on_exit = on_exit

        if drafts is None:
            drafts = DraftPersistence(
                storage or MemoryKeyValueStorage(),
                debounce_seconds=self.settings.draft_debounce_seconds,
                logger=self.logger,
            )
        drafts.is_suspended = self._drafts_suspended
        drafts.enabled = entry_mode.is_create
        self.drafts = drafts

        self.loader = loader or RemoteLoader(api, customers=customers, logger=self.logger)

        self._state = SessionState.INITIALIZING
        self._lock = asyncio.Lock()
        self._store = SectionStore(codec=self.codec, logger=self.logger)
        self._metadata = DocumentMetadata()
        self._active_id = self._store.first().section_id
        self._dialog = SaveDialogState()
        self._periodic_task: Optional["asyncio.Task[None]"] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_section_id(self) -> str:
        return self._active_id

    @property
    def active_section(self) -> Section:
        return self._store.get(self._active_id)

    @property
    def sections(self) -> List[Section]:
        return self._store.to_list()

    @property
    def metadata(self) -> DocumentMetadata:
        return self._metadata.model_copy()

    @property
    def form_type(self) -> FormType:
        return self._metadata.form_type

    @property
    def document(self) -> Document:
        return Document(**self._metadata.model_dump(), sections=self._store.to_list())

    @property
    def save_dialog(self) -> SaveDialogState:
        return self._dialog.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Populate the session from the draft slot or the remote template.

        Raises:
            RemoteLoadError: If an edit/duplicate load fails; the session is
                closed and ``on_exit`` has been called with ``load_failed``
        """
        self._require_state(SessionState.INITIALIZING, "start")
        self.logger.info("Session starting", mode=self.entry_mode.kind.value)

        if self.entry_mode.is_create:
            await self._restore_draft()
        else:
            await self._load_remote()

        if self._state is SessionState.CLOSED:
            return
        self._transition(SessionState.READY)
        self._start_periodic_pull()

    def close(self) -> None:
        """Leave the screen. Pending draft writes are flushed first."""
        if self._state is SessionState.CLOSED:
            return
        if self.drafts.pending and self._state in (SessionState.READY, SessionState.SAVING):
            self.drafts.flush()
        self._close()

    def flush_on_unload(self) -> bool:
        """Best-effort synchronous draft write for page/tab teardown."""
        if not self.entry_mode.is_create:
            return False
        if self._state not in (SessionState.READY, SessionState.SAVING):
            return False
        if not self.codec.busy:
            self._pull_now()
        return self.drafts.flush(self._draft_record)

    # ------------------------------------------------------------------
    # Editor synchronisation
    # ------------------------------------------------------------------

    async def pull_active_section(self) -> Optional[str]:
        """Copy the editor's current snapshot into the active section."""
        async with self._lock:
            self._require_state(SessionState.READY, "pull")
            return await self._pull()

    async def switch_active_section(self, target_id: str) -> None:
        """
        Show another section in the editor.

        The current editor content is stored into the active section before
        the target's stored fragment is pushed into the editor.

        Raises:
            SectionNotFoundError: If ``target_id`` is unknown
        """
        async with self._lock:
            self._require_state(SessionState.READY, "switch section")
            await self._switch(target_id)

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    async def add_section(self, name: str) -> str:
        """Append a section, switch to it, and return its id."""
        async with self._lock:
            self._require_state(SessionState.READY, "add section")
            section_id = self._store.add(name)
            if len(self._store) > 1 and self._metadata.form_type is FormType.SINGLE:
                self._metadata.form_type = FormType.MULTI_STEP
            await self._switch(section_id)
            return section_id

    async def remove_section(self, section_id: str) -> None:
        """
        Delete a section.

        Raises:
            LastSectionError: If it is the only section
            SectionNotFoundError: If ``section_id`` is unknown
        """
        async with self._lock:
            self._require_state(SessionState.READY, "remove section")
            was_active = section_id == self._active_id
            self._store.remove(section_id)
            if was_active:
                self._active_id = self._store.first().section_id
                await self._push_active()
            if len(self._store) == 1 and self.settings.auto_downgrade_single:
                self._metadata.form_type = FormType.SINGLE
            self._touch()

    async def rename_section(self, section_id: str, new_name: str) -> bool:
        """Rename a section; blank names are ignored and return False."""
        async with self._lock:
            self._require_state(SessionState.READY, "rename section")
            self._store.get(section_id)
            if not (new_name or "").strip():
                return False
            if section_id != self._active_id:
                self._store.rename(section_id, new_name)
            else:
                # The editor keys its state by name: save, rename, reload.
                await self._pull()
                self._store.rename(section_id, new_name)
                await self._push_active()
            self._touch()
            return True

    async def rename_active_section(self, new_name: str) -> bool:
        return await self.rename_section(self._active_id, new_name)

    async def move_section(self, section_id: str, new_position: int) -> None:
        async with self._lock:
            self._require_state(SessionState.READY, "move section")
            self._store.move(section_id, new_position)
            self._touch()

    async def toggle_form_type(self, target: Union[FormType, str]) -> bool:
        """
        Switch between single and multi-step forms.

        Going to single with several sections keeps only the first one and
        needs confirmation. Returns True if the form type changed.
        """
        target = FormType(target)
        async with self._lock:
            self._require_state(SessionState.READY, "toggle form type")
            if target is self._metadata.form_type:
                return False

            if target is FormType.SINGLE and len(self._store) > 1:
                if not await self._confirm(
                    "Switching to single form will keep only the first section. Continue?"
                ):
                    return False
                await self._pull()
                kept = self._store.reduce_to_single()
                if kept.section_id != self._active_id:
                    self._active_id = kept.section_id
                    await self._push_active()

            self._metadata.form_type = target
            self._touch()
            self.logger.info("Form type changed", form_type=target.value)
            return True

    async def clear_form(self) -> bool:
        """Reset to one empty section and drop the draft. Not allowed in edit mode."""
        async with self._lock:
            self._require_state(SessionState.READY, "clear form")
            if self.entry_mode.is_edit:
                self.notifier.warning("Cannot clear form in edit mode. Use back button to cancel.")
                return False
            if not await self._confirm(
                "Are you sure you want to clear the form? All unsaved changes will be lost."
            ):
                return False

            self._metadata = DocumentMetadata()
            self._store.replace([])
            self._active_id = self._store.first().section_id
            self._dialog = SaveDialogState()
            self.drafts.clear()
            await self._push_active()
            self.notifier.success("Form cleared successfully")
            return True

    # ------------------------------------------------------------------
    # Metadata and save dialog
    # ------------------------------------------------------------------

    def update_metadata(self, **changes: Any) -> DocumentMetadata:
        """
        Change identity fields such as ``template_name`` or ``customer_id``.

        Raises:
            ValidationError: For read-only or unknown fields, or invalid values
        """
        self._require_state(SessionState.READY, "update metadata")
        rejected = sorted(set(changes) - EDITABLE_METADATA_FIELDS)
        if rejected:
            raise ValidationError(
                code="READ_ONLY_FIELD",
                message=f"Fields cannot be edited: {', '.join(rejected)}",
                details={"fields": rejected},
            )
        try:
            updated = DocumentMetadata.model_validate({**self._metadata.model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError(
                code="INVALID_METADATA",
                message="Invalid metadata values",
                details={"errors": [e["msg"] for e in exc.errors()]},
            ) from exc

        self._metadata = updated
        for field in changes:
            self._dialog.field_errors.pop(field, None)
            if field == "customer_id":
                self._dialog.field_errors.pop(self.settings.customer_field, None)
        self._touch()
        return self.metadata

    async def open_save_dialog(self) -> SaveDialogState:
        """Pull the active section, then reveal the save form."""
        async with self._lock:
            self._require_state(SessionState.READY, "open save dialog")
            await self._pull()
            self._dialog = SaveDialogState(is_open=True)
            return self.save_dialog

    def close_save_dialog(self) -> None:
        self._dialog = SaveDialogState()

    def assemble_payload(self) -> SavePayload:
        """Build the create/update body from the stored sections."""
        return SavePayload.from_document(
            self._metadata, self._store.to_list(), decode=self._decode_section
        )

    async def submit(self) -> str:
        """
        Validate, pull, and send the document to the backend.

        Returns:
            The remote document id

        Raises:
            SubmissionValidationError: If required identity fields are missing
            RemoteSubmitError: If the backend rejects the request; the dialog
                stays open with field errors and the draft is kept
        """
        async with self._lock:
            self._require_state(SessionState.READY, "submit")
            missing = self._missing_fields()
            if missing:
                self._dialog = SaveDialogState(
                    is_open=True,
                    field_errors=missing,
                    error_message="Please fill in the required fields",
                )
                self.notifier.error(next(iter(missing.values()))[0])
                raise SubmissionValidationError(missing)

            self._transition(SessionState.SAVING)
            self._dialog = SaveDialogState(is_open=True)
            try:
                await self._pull()
                body = self.assemble_payload().to_request(self.settings.customer_field)
                if self.entry_mode.is_edit:
                    response = await self.api.update(self.entry_mode.existing_id, body)
                else:
                    response = await self.api.create(body)
            except Exception as exc:
                raise self._submit_failed(exc) from exc

            if self._state is SessionState.CLOSED:
                self.logger.info("Submit completed after session closed, result ignored")
                return str((response or {}).get("id") or self.entry_mode.existing_id or "")

            response = response or {}
            document_id = str(response.get("id") or self.entry_mode.existing_id or "")
            if response.get("version") is not None:
                self._metadata.version = response["version"]
            if self.entry_mode.is_create:
                self.drafts.clear()
            self.drafts.cancel()
            self._dialog = SaveDialogState()
            self.notifier.success(
                "Form updated successfully!" if self.entry_mode.is_edit else "Form saved successfully!"
            )
            self.logger.info(
                "Document submitted", document_id=document_id, mode=self.entry_mode.kind.value
            )
            self._close()
            self._exit(EXIT_SUBMITTED)
            return document_id

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _submit_failed(self, exc: Exception) -> RemoteSubmitError:
        field_errors: Dict[str, List[str]] = {}
        status = 0
        message = str(exc)
        if isinstance(exc, RemoteApiError):
            field_errors = exc.field_errors
            status = exc.status
            message = exc.message
        self.logger.error("Submit failed", error=message, status=status)

        if self._state is not SessionState.CLOSED:
            self._transition(SessionState.READY)
            self._dialog = SaveDialogState(
                is_open=True, field_errors=field_errors, error_message=message
            )
            self.notifier.error(
                message or "Failed to save form. Please check the errors below.", duration_ms=5000
            )
        return RemoteSubmitError(message, field_errors=field_errors, status=status)

    def _missing_fields(self) -> Dict[str, List[str]]:
        meta = self._metadata
        missing: Dict[str, List[str]] = {}
        if not meta.template_name.strip():
            missing["template_name"] = ["Template name is required"]
        if self.settings.require_customer and meta.customer_id in (None, ""):
            missing[self.settings.customer_field] = ["Customer is required"]
        if self.settings.require_sheet_url and not meta.sheet_url.strip():
            missing["sheet_url"] = ["Sheet URL is required"]
        return missing

    def _decode_section(self, section: Section) -> Any:
        try:
            return self.codec.decode(section.content_fragment)
        except FragmentDecodeError as exc:
            self.logger.warning(
                "Section fragment undecodable, submitting default form",
                section_id=section.section_id,
                error=exc.reason,
            )
            return default_form()

    async def _restore_draft(self) -> None:
        self._transition(SessionState.RESTORING)
        record = self.drafts.load()
        if record is not None:
            self._apply_draft(record)
        # Autosave stays suspended until the editor has taken the fragment.
        loaded = await self._push_active()
        if record is not None and loaded:
            self.notifier.info("Draft restored from previous session")

    def _apply_draft(self, record: DraftRecord) -> None:
        self._metadata = record.metadata
        self._store.replace(record.sections)
        selected = record.selected_section_id
        if self._metadata.form_type is FormType.MULTI_STEP and selected in self._store:
            self._active_id = selected
        else:
            self._active_id = self._store.first().section_id
        self.logger.info(
            "Draft applied", sections=len(self._store), saved_at=record.saved_at
        )

    async def _load_remote(self) -> None:
        # Remote is authoritative; a stale local draft must not shadow it.
        self.drafts.clear()
        self._transition(SessionState.LOADING)
        try:
            loaded = await self.loader.load(self.entry_mode)
        except RemoteLoadError:
            if self._state is not SessionState.CLOSED:
                self.notifier.error("Failed to load form data. Please try again.")
                self._close()
                self._exit(EXIT_LOAD_FAILED)
            raise

        if self._state is SessionState.CLOSED:
            self.logger.info("Remote load finished after session closed, result ignored")
            return

        self._metadata = loaded.metadata.model_copy()
        self._store.replace(loaded.sections)
        self._active_id = self._store.first().section_id
        await self._push_active()

        if self.entry_mode.is_duplicate:
            # Prompt for the new identity straight away.
            self._dialog = SaveDialogState(is_open=True)

    async def _switch(self, target_id: str) -> None:
        self._store.get(target_id)
        if target_id == self._active_id:
            return
        await self._pull()
        self._active_id = target_id
        await self._push_active()
        self._touch()

    async def _pull(self) -> Optional[str]:
        await self.codec.wait_idle()
        return self._pull_now()

    def _pull_now(self) -> Optional[str]:
        try:
            snapshot = self.editor.get_snapshot()
        except Exception as exc:
            self.logger.warning(
                "Editor snapshot failed, keeping stored content",
                section_id=self._active_id,
                error=str(exc),
            )
            return None
        fragment = self.codec.encode(snapshot)
        self._store.set_content(self._active_id, fragment)
        self._touch()
        return fragment

    async def _push_active(self) -> bool:
        await asyncio.sleep(self.settings.push_delay_seconds)
        if self._state is SessionState.CLOSED:
            return False
        fragment = self._store.get(self._active_id).content_fragment
        try:
            self.editor.load_snapshot(fragment)
        except Exception as exc:
            self.logger.warning(
                "Editor rejected fragment", section_id=self._active_id, error=str(exc)
            )
            return False
        return True

    def _touch(self) -> None:
        self.drafts.schedule_save(self._draft_record)

    def _draft_record(self) -> DraftRecord:
        return DraftRecord(
            **self._metadata.model_dump(),
            sections=self._store.to_list(),
            selected_section_id=self._active_id,
        )

    def _drafts_suspended(self) -> bool:
        return self._state in (
            SessionState.INITIALIZING,
            SessionState.RESTORING,
            SessionState.CLOSED,
        )

    async def _confirm(self, message: str) -> bool:
        if self.confirm is None:
            self.logger.info("No confirmation handler, destructive action declined")
            return False
        result = self.confirm(message)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)

    def _start_periodic_pull(self) -> None:
        interval = self.settings.periodic_pull_seconds
        if interval > 0:
            self._periodic_task = asyncio.ensure_future(self._periodic_pull(interval))

    async def _periodic_pull(self, interval: float) -> None:
        while self._state is not SessionState.CLOSED:
            await asyncio.sleep(interval)
            if self._state is SessionState.READY and not self._lock.locked():
                async with self._lock:
                    await self._pull()

    def _exit(self, reason: str) -> None:
        if self.on_exit is not None:
            self.on_exit(reason)

    def _close(self) -> None:
        self.drafts.cancel()
        if self._periodic_task is not None:
            self._periodic_task.cancel()
            self._periodic_task = None
        self._transition(SessionState.CLOSED)
        self.logger.info("Session closed", mode=self.entry_mode.kind.value)

    def _require_state(self, expected: SessionState, operation: str) -> None:
        if self._state is not expected:
            raise InvalidSessionStateError(
                f"Cannot {operation} while session is {self._state.value}",
                details={"state": self._state.value, "expected": expected.value},
            )

    def _transition(self, target: SessionState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidSessionStateError(
                f"Illegal session transition {self._state.value} -> {target.value}",
                details={"from": self._state.value, "to": target.value},
            )
        self.logger.debug("Session state", previous=self._state.value, state=target.value)
        self._state = target
