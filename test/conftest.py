"""Pytest configuration and fixtures

Provides shared fixtures for all tests: a scriptable editor, an in-memory
document API, storage, a collecting notifier and a controller factory with
timings shortened for tests.
"""

import sys
from pathlib import Path
from typing import Any, List, Optional

import pytest

# Add project root and this directory to sys.path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from form_helpers import TEST_DEBOUNCE_SECONDS, FakeDocumentApi, FakeEditor  # noqa: E402
from formdraft.logger import ConsoleLogger, Logger  # noqa: E402
from formdraft.notifications import CollectingNotifier  # noqa: E402
from formdraft.sessions import SessionController, SessionSettings  # noqa: E402
from formdraft.storage import MemoryKeyValueStorage  # noqa: E402
from formdraft.validation import EntryMode  # noqa: E402


@pytest.fixture
def logger() -> Logger:
    return ConsoleLogger(name="formdraft.test")


@pytest.fixture
def editor() -> FakeEditor:
    return FakeEditor()


@pytest.fixture
def api() -> FakeDocumentApi:
    return FakeDocumentApi()


@pytest.fixture
def storage() -> MemoryKeyValueStorage:
    return MemoryKeyValueStorage()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def settings() -> SessionSettings:
    return SessionSettings(draft_debounce_seconds=TEST_DEBOUNCE_SECONDS, push_delay_seconds=0)


@pytest.fixture
def exits() -> List[str]:
    return []


@pytest.fixture
def make_controller(editor, api, storage, notifier, settings, exits, logger):
    """Factory building a controller over the shared fakes."""

    def _make(
        entry_mode: Optional[EntryMode] = None,
        confirm: Any = True,
        settings_override: Optional[SessionSettings] = None,
    ) -> SessionController:
        if callable(confirm):
            confirm_callback = confirm
        else:
            confirm_callback = lambda message: confirm  # noqa: E731
        return SessionController(
            entry_mode=entry_mode or EntryMode.create(),
            editor=editor,
            api=api,
            customers=api,
            storage=storage,
            notifier=notifier,
            confirm=confirm_callback,
            on_exit=exits.append,
            settings=settings_override or settings,
            logger=logger,
        )

    return _make
