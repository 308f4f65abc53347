"""Authoring session package."""
from formdraft.sessions.controller import (
    EXIT_LOAD_FAILED,
    EXIT_SUBMITTED,
    SessionController,
    SessionState,
)
from formdraft.sessions.factory import build_session
from formdraft.sessions.settings import SessionSettings

__all__ = [
    "EXIT_LOAD_FAILED",
    "EXIT_SUBMITTED",
    "SessionController",
    "SessionSettings",
    "SessionState",
    "build_session",
]
