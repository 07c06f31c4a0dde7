"""
Logging configuration and utilities for Agent Miyabi.
"""

import logging
import structlog
from typing import Any
import sys


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Route structlog through stdlib logging on stdout.

    Calling it again replaces the previous configuration, so an application
    can switch level or renderer after loading its config.

    Args:
        level: One of LOG_LEVELS, case-insensitive
        json_format: Render one JSON object per line instead of console output

    Raises:
        ValueError: If the level is unknown
    """
    level_name = level.upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name),
        force=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        structlog.BoundLogger: Configured logger instance
    """
    return structlog.get_logger(name)


class LoggerMixin:
    """
    Mixin giving agents a bound logger and task-level log helpers.
    """

    @property
    def logger(self) -> structlog.BoundLogger:
        """Get logger for this class."""
        if not hasattr(self, '_logger'):
            self._logger = get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        return self._logger

    def log_task_started(self, task_type: str, **context: Any) -> None:
        self.logger.debug("Task started", task_type=task_type, **context)

    def log_task_completed(self, task_type: str, duration_ms: int, **context: Any) -> None:
        self.logger.debug("Task completed", task_type=task_type, duration_ms=duration_ms, **context)

    def log_task_failed(self, task_type: str, error: BaseException, duration_ms: int, **context: Any) -> None:
        """Log a handler failure. The orchestrator reports it again in the response."""
        self.logger.warning(
            "Task failed",
            task_type=task_type,
            duration_ms=duration_ms,
            error=str(error) or type(error).__name__,
            error_type=type(error).__name__,
            **context
        )
