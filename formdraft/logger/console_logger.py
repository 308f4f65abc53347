"""Logger that writes formatted records to stderr."""

import logging
import sys
from typing import Optional

from .default_logger import DefaultLogger

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class ConsoleLogger(DefaultLogger):
    """DefaultLogger with its own stderr handler attached once per logger name."""

    def __init__(self, name: str = "formdraft", level: int = logging.INFO, stream: Optional[object] = None):
        super().__init__(name=name, level=level)
        if not any(getattr(h, "_formdraft_console", False) for h in self._logger.handlers):
            handler = logging.StreamHandler(stream or sys.stderr)
            handler.setFormatter(logging.Formatter(_FORMAT))
            handler._formdraft_console = True  # type: ignore[attr-defined]
            self._logger.addHandler(handler)
            self._logger.propagate = False
