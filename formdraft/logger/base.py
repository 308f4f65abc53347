"""Abstract logger interface.

Loggers accept a message plus arbitrary keyword context, so call sites read
``logger.info("Draft saved", key=key, sections=3)``.
"""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Interface every formdraft logger implements."""

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def critical(self, message: str, **kwargs: Any) -> None:
        pass
