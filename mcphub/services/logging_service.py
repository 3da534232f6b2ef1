# -*- coding: utf-8 -*-
"""Logging Service Implementation.

Copyright 2025
SPDX-License-Identifier: Apache-2.0

This module configures logging for the hub process. Every module obtains its
logger through :class:`LoggingService` so that console and optional JSON file
handlers are attached consistently. Sandbox worker processes use plain
``logging`` loggers and never write to the hub's log file.
"""

# Standard
import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Dict, Optional

# Third-Party
from pythonjsonlogger import jsonlogger

# First-Party
from mcphub.config import settings
from mcphub.models import LogLevel

# Create a text formatter
text_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# Create a JSON formatter
json_formatter = jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")

# Global handlers will be created lazily
_file_handler: Optional[RotatingFileHandler] = None
_text_handler: Optional[logging.StreamHandler] = None

_STDLIB_LEVELS: Dict[LogLevel, int] = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.NOTICE: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
    LogLevel.ALERT: logging.CRITICAL,
    LogLevel.EMERGENCY: logging.CRITICAL,
}


def _get_file_handler() -> RotatingFileHandler:
    """Get or create the file handler.

    Returns:
        RotatingFileHandler: The file handler for JSON logging.

    Raises:
        ValueError: If file logging is disabled or no log file specified.
    """
    global _file_handler  # pylint: disable=global-statement
    if _file_handler is None:
        if not settings.log_to_file or not settings.log_file:
            raise ValueError("File logging is disabled or no log file specified")

        if settings.log_folder:
            os.makedirs(settings.log_folder, exist_ok=True)
            log_path = os.path.join(settings.log_folder, settings.log_file)
        else:
            log_path = settings.log_file

        _file_handler = RotatingFileHandler(log_path, maxBytes=1024 * 1024, backupCount=5)
        _file_handler.setFormatter(json_formatter)
    return _file_handler


def _get_text_handler() -> logging.StreamHandler:
    """Get or create the console handler (stderr, stdout belongs to the stdio transport).

    Returns:
        logging.StreamHandler: The stream handler for console logging.
    """
    global _text_handler  # pylint: disable=global-statement
    if _text_handler is None:
        _text_handler = logging.StreamHandler()
        _text_handler.setFormatter(json_formatter if settings.log_format == "json" else text_formatter)
    return _text_handler


class LoggingService:
    """Hub logging service.

    Provides:
    - Named logger creation with shared handlers
    - Log level management across all created loggers

    Examples:
        >>> service = LoggingService()
        >>> service.level
        <LogLevel.INFO: 'info'>
    """

    def __init__(self):
        """Initialize logging service."""
        self._level = LogLevel(settings.log_level.lower())
        self._loggers: Dict[str, logging.Logger] = {}

    @property
    def level(self) -> LogLevel:
        """Current minimum log level.

        Returns:
            The active LogLevel.
        """
        return self._level

    async def initialize(self) -> None:
        """Attach handlers to the root logger.

        Examples:
            >>> import asyncio
            >>> service = LoggingService()
            >>> asyncio.run(service.initialize())
        """
        root = logging.getLogger()
        self._loggers[""] = root
        root.setLevel(_STDLIB_LEVELS[self._level])

        if _get_text_handler() not in root.handlers:
            root.addHandler(_get_text_handler())

        if settings.log_to_file and settings.log_file:
            try:
                root.addHandler(_get_file_handler())
                logging.info(f"File logging enabled: {settings.log_folder or '.'}/{settings.log_file}")
            except OSError as e:
                logging.warning(f"Failed to initialize file logging: {e}")
        else:
            logging.info("File logging disabled - logging to stderr only")

        logging.info("Logging service initialized")

    async def shutdown(self) -> None:
        """Flush and detach the handlers owned by this service.

        Examples:
            >>> import asyncio
            >>> service = LoggingService()
            >>> asyncio.run(service.shutdown())
        """
        for logger in self._loggers.values():
            for handler in logger.handlers:
                handler.flush()
        logging.info("Logging service shutdown")

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create logger instance.

        Args:
            name: Logger name

        Returns:
            Logger instance

        Examples:
            >>> service = LoggingService()
            >>> logger = service.get_logger('test')
            >>> import logging
            >>> isinstance(logger, logging.Logger)
            True
        """
        if name not in self._loggers:
            logger = logging.getLogger(name)

            if _get_text_handler() not in logger.handlers:
                logger.addHandler(_get_text_handler())
            logger.propagate = False

            if settings.log_to_file and settings.log_file:
                try:
                    logger.addHandler(_get_file_handler())
                except OSError as e:
                    logging.getLogger(__name__).warning(f"Failed to add file handler to logger {name}: {e}")

            logger.setLevel(_STDLIB_LEVELS[self._level])
            self._loggers[name] = logger

        return self._loggers[name]

    async def set_level(self, level: LogLevel) -> None:
        """Set minimum log level for every logger created by this service.

        Args:
            level: New log level

        Examples:
            >>> import asyncio
            >>> service = LoggingService()
            >>> asyncio.run(service.set_level(LogLevel.DEBUG))
            >>> service.level
            <LogLevel.DEBUG: 'debug'>
        """
        self._level = level

        log_level = _STDLIB_LEVELS[level]
        for logger in self._loggers.values():
            logger.setLevel(log_level)
