"""Logging helpers."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

PACKAGE_LOGGER = "wechat_openapi"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}


class JsonFormatter(logging.Formatter):
    """Render log records as compact JSON."""

    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.default_time_format),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        }
        if extras:
            data.update(extras)

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, ensure_ascii=False, default=str)


def _formatter(structured: bool) -> logging.Formatter:
    return JsonFormatter() if structured else logging.Formatter(_PLAIN_FORMAT)


def configure_logging(
    *,
    level: int | str = logging.INFO,
    structured: bool = True,
    debug: bool = True,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the package logger.

    With ``debug`` disabled the package logger only gets a ``NullHandler`` and
    stops propagating, so SDK request logs stay silent.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if not debug:
        logger.addHandler(logging.NullHandler())
        logger.propagate = False
        return logger

    logger.setLevel(level)
    logger.propagate = False
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(structured))
    logger.addHandler(handler)
    return logger


def ensure_logging(
    *,
    level: int | str = logging.INFO,
    structured: bool = True,
    debug: bool = True,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the package logger unless something already did."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    if logger.handlers:
        return logger
    return configure_logging(level=level, structured=structured, debug=debug, log_file=log_file)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["configure_logging", "ensure_logging", "get_logger", "JsonFormatter", "PACKAGE_LOGGER"]
