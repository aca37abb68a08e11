"""Helpers for loading configuration."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

DEFAULT_CONFIG_NAME = "config.toml"
CONFIG_ENV_VAR = "WECHAT_OPENAPI_CONFIG"
DEFAULT_TOKEN_QUERY_NAME = "access_token"
DEFAULT_LANGUAGE = "zh_cn"


@dataclass(slots=True)
class HttpSettings:
    timeout: float = 10.0
    max_token_retries: int = 2


@dataclass(slots=True)
class WeChatSettings:
    """Account-level settings for a single Official Account."""

    app_id: str | None = None
    app_secret: str | None = None
    app_id_env: str = "WECHAT_APP_ID"
    app_secret_env: str = "WECHAT_APP_SECRET"
    secrets_file: Path | None = None
    token_query_name: str = DEFAULT_TOKEN_QUERY_NAME
    token_cache: Path | None = None
    language: str = DEFAULT_LANGUAGE
    authorizer_app_id: str | None = None
    authorizer_refresh_token: str | None = None
    component_verify_ticket: str | None = None


@dataclass(slots=True)
class LogSettings:
    debug: bool = False
    level: str = "DEBUG"
    structured: bool = True
    file: Path | None = None


@dataclass(slots=True)
class AppConfig:
    wechat: WeChatSettings
    http: HttpSettings
    log: LogSettings
    source: Path | None = None


def _to_path(value: str | None, *, base: Path) -> Path | None:
    if not value:
        return None
    candidate = Path(value)
    return candidate if candidate.is_absolute() else base / candidate


def _config_path(explicit: str | os.PathLike[str] | None = None) -> Path:
    if explicit:
        return Path(explicit)
    env_value = os.environ.get(CONFIG_ENV_VAR)
    return Path(env_value) if env_value else Path.cwd() / DEFAULT_CONFIG_NAME


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def build_config(
    data: Mapping[str, Any],
    *,
    base_dir: Path | None = None,
    source: Path | None = None,
) -> AppConfig:
    """Build an :class:`AppConfig` from an already parsed mapping."""

    base = base_dir or Path.cwd()
    wechat_section = data.get("wechat", {})
    http_section = data.get("http", {})
    log_section = data.get("log", {})

    max_retries = int(http_section.get("max_token_retries", 2))
    if max_retries < 0:
        raise ValueError(f"http.max_token_retries 不能为负数: {max_retries}")

    wechat = WeChatSettings(
        app_id=wechat_section.get("app_id") or None,
        app_secret=wechat_section.get("app_secret") or None,
        app_id_env=str(wechat_section.get("app_id_env", "WECHAT_APP_ID")),
        app_secret_env=str(wechat_section.get("app_secret_env", "WECHAT_APP_SECRET")),
        secrets_file=_to_path(wechat_section.get("secrets_file"), base=base),
        token_query_name=str(wechat_section.get("token_query_name", DEFAULT_TOKEN_QUERY_NAME)),
        token_cache=_to_path(wechat_section.get("token_cache"), base=base),
        language=str(wechat_section.get("language", DEFAULT_LANGUAGE)).lower(),
        authorizer_app_id=wechat_section.get("authorizer_app_id") or None,
        authorizer_refresh_token=wechat_section.get("authorizer_refresh_token") or None,
        component_verify_ticket=wechat_section.get("component_verify_ticket") or None,
    )
    http = HttpSettings(
        timeout=float(http_section.get("timeout", 10)),
        max_token_retries=max_retries,
    )
    log = LogSettings(
        debug=_as_bool(log_section.get("debug"), False),
        level=str(log_section.get("level", "DEBUG")).upper(),
        structured=_as_bool(log_section.get("structured"), True),
        file=_to_path(log_section.get("file"), base=base),
    )
    return AppConfig(wechat=wechat, http=http, log=log, source=source)


def load_config(path: str | os.PathLike[str] | None = None) -> AppConfig:
    """Load the TOML configuration file.

    Relative paths inside the file are resolved against the file's directory.
    """

    config_path = _config_path(path).resolve()
    data = _load_toml(config_path)
    return build_config(data, base_dir=config_path.parent, source=config_path)
