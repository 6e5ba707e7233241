"""
Structured Logging Framework

This module provides the core logging infrastructure using structlog on top of
the standard library, rendering either human-readable console lines or JSON,
with an optional rotating log file.
"""

import logging
import logging.handlers
import sys
import traceback
from pathlib import Path
from typing import List, Optional

import structlog

from ..config.schema import LoggingConfig


class StructuredLogger:
    """Structured logger using structlog with console or JSON rendering."""

    def __init__(self, config: LoggingConfig):
        """Initialize structured logger.

        Args:
            config: Logging configuration
        """
        self.config = config
        self._configured = False
        self.logger = None

    def _get_shared_processors(self) -> List:
        """Processors applied to both structlog and stdlib records."""
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
        ]

    def _get_renderer(self):
        if self.config.format == "json":
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    def _build_formatter(self) -> structlog.stdlib.ProcessorFormatter:
        processors = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
        if self.config.format == "json":
            processors.append(structlog.processors.format_exc_info)
        processors.append(self._get_renderer())

        return structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=self._get_shared_processors(),
            processors=processors,
        )

    def configure(self) -> None:
        """Configure structlog and the root stdlib logger."""
        if self._configured:
            return

        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        log_level = getattr(logging, self.config.level.upper())
        root_logger.setLevel(log_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(self._build_formatter())
        root_logger.addHandler(console_handler)

        if self.config.file:
            self._setup_file_logging(root_logger, log_level)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *self._get_shared_processors(),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )

        self._configured = True
        self.logger = structlog.get_logger("tor_auth")

    def _setup_file_logging(self, root_logger: logging.Logger, log_level: int) -> None:
        """Add a rotating file handler that always writes JSON."""
        log_path = Path(self.config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=self.config.file,
            maxBytes=self.config.max_size_mb * 1024 * 1024,
            backupCount=self.config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=self._get_shared_processors(),
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        root_logger.addHandler(file_handler)

    def get_logger(self, name: str = "tor_auth") -> structlog.stdlib.BoundLogger:
        """Get a structured logger instance.

        Args:
            name: Logger name

        Returns:
            Structured logger instance
        """
        if not self._configured:
            self.configure()

        return structlog.get_logger(name)


# Global logger instance
_logger_instance: Optional[StructuredLogger] = None


def setup_logging(config: LoggingConfig) -> None:
    """Setup global logging configuration.

    Args:
        config: Logging configuration
    """
    global _logger_instance
    _logger_instance = StructuredLogger(config)
    _logger_instance.configure()


def get_logger(name: str = "tor_auth") -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Before setup_logging() is called this returns structlog's default logger,
    so library code can log without the application being configured.
    """
    if _logger_instance is None:
        return structlog.get_logger(name)

    return _logger_instance.get_logger(name)


def log_exception(
    logger: structlog.stdlib.BoundLogger, message: str, exc: Exception = None
) -> None:
    """Log an exception with its traceback.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance (optional, will use current exception if None)
    """
    if exc is None:
        exc = sys.exc_info()[1]

    if exc is None:
        logger.error(message)
        return

    logger.error(
        message,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        traceback="".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        ),
    )
