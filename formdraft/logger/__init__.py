"""
Logger module for formdraft

This module provides a flexible logging interface that allows hosts to
drop in their own logger implementations.

Usage:
    from formdraft.logger import Logger, DefaultLogger

    # Use the default logger
    logger = DefaultLogger()
    logger.info("Session started", mode="create")

    # Or implement your own
    class MyCustomLogger(Logger):
        def info(self, message: str, **kwargs):
            # Your custom implementation
            pass
"""

from .base import Logger
from .default_logger import DefaultLogger
from .console_logger import ConsoleLogger

# Shared logger instance for components constructed without one
session_logger: Logger = DefaultLogger("formdraft")

__all__ = [
    "Logger",
    "DefaultLogger",
    "ConsoleLogger",
    "session_logger",
]
