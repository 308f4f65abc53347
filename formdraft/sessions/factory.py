"""Wire a session controller from environment configuration."""

from typing import Any, Mapping, Optional

from formdraft.config import Config
from formdraft.editor.base import FormEditor
from formdraft.logger import Logger
from formdraft.notifications import Notifier
from formdraft.remote.http_client import HttpDocumentApi
from formdraft.sessions.controller import ConfirmCallback, ExitCallback, SessionController
from formdraft.sessions.settings import SessionSettings
from formdraft.storage.file_storage import FileKeyValueStorage
from formdraft.validation.document_models import EntryMode


def build_session(
    entry_params: Mapping[str, Any],
    editor: FormEditor,
    notifier: Optional[Notifier] = None,
    confirm: Optional[ConfirmCallback] = None,
    on_exit: Optional[ExitCallback] = None,
    logger: Optional[Logger] = None,
) -> SessionController:
    """Create a controller backed by the HTTP API and the file draft slot.

    ``entry_params`` are the screen's entry parameters (``edit``/``duplicate``).
    """
    api = HttpDocumentApi(logger=logger)
    settings = SessionSettings.from_env()
    return SessionController(
        entry_mode=EntryMode.from_params(entry_params),
        editor=editor,
        api=api,
        customers=api,
        storage=FileKeyValueStorage(str(Config.get_drafts_dir()), logger=logger),
        notifier=notifier,
        confirm=confirm,
        on_exit=on_exit,
        settings=settings,
        logger=logger,
    )
