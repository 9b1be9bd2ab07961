"""Logging configuration for the simulator.

Modules obtain loggers through :func:`get_logger`; applications call
:func:`configure_logging` once at start.
"""

from __future__ import annotations

import json
import logging
import os
import sys

__all__ = ["JsonFormatter", "configure_logging", "get_logger"]


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter for log records."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
        }
        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log)


def configure_logging(
    level: str | None = None,
    json_output: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure global logging.

    Logs to stdout and optionally tees into ``log_file``. The level falls back
    to the ``LOG_LEVEL`` environment variable, then to INFO.
    """
    effective_level = level or os.getenv("LOG_LEVEL") or "INFO"
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    formatter: logging.Formatter
    if json_output:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, effective_level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
