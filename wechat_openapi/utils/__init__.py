"""Utility exports."""

from .logging import JsonFormatter, configure_logging, ensure_logging, get_logger

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "ensure_logging",
    "get_logger",
]
