"""Logger backed by a named standard-library logger."""

import logging
from typing import Any, Dict, Optional

from .base import Logger


def format_context(message: str, context: Dict[str, Any]) -> str:
    """Append ``key=value`` pairs to a log message."""
    if not context:
        return message
    pairs = " ".join(f"{key}={value!r}" for key, value in context.items())
    return f"{message} | {pairs}"


class DefaultLogger(Logger):
    """Delegates to ``logging.getLogger(name)``; handlers are left to the host."""

    def __init__(self, name: str = "formdraft", level: Optional[int] = None):
        self._logger = logging.getLogger(name)
        if level is not None:
            self._logger.setLevel(level)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, kwargs: Dict[str, Any]) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, format_context(message, kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, message, kwargs)
