"""Settings package exports."""

from .loader import (
    AppConfig,
    HttpSettings,
    LogSettings,
    WeChatSettings,
    build_config,
    load_config,
)

__all__ = [
    "AppConfig",
    "HttpSettings",
    "LogSettings",
    "WeChatSettings",
    "build_config",
    "load_config",
]
