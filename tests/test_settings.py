from __future__ import annotations

from pathlib import Path

import pytest

from wechat_openapi.security import (
    APP_ID_KEY,
    APP_SECRET_KEY,
    ChainedSecretProvider,
    EnvSecretProvider,
    FileSecretProvider,
    MappingSecretProvider,
    SecretNotFoundError,
)
from wechat_openapi.settings import build_config, load_config
from wechat_openapi.app import build_secret_provider

_CONFIG = """
[wechat]
app_id = "wx-inline"
token_cache = "state/token.json"
language = "zh_CN"
token_query_name = "access_token"

[http]
timeout = 5
max_token_retries = 1

[log]
debug = true
structured = false
file = "logs/wechat.log"
"""


def test_load_config_resolves_relative_paths(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(_CONFIG, encoding="utf-8")

    config = load_config(config_path)

    assert config.wechat.app_id == "wx-inline"
    assert config.wechat.app_secret is None
    assert config.wechat.token_cache == tmp_path / "state" / "token.json"
    assert config.wechat.language == "zh_cn"
    assert config.http.timeout == 5.0
    assert config.http.max_token_retries == 1
    assert config.log.debug is True
    assert config.log.structured is False
    assert config.log.file == tmp_path / "logs" / "wechat.log"
    assert config.source == config_path.resolve()


def test_config_path_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "custom.toml"
    config_path.write_text("[http]\ntimeout = 2\n", encoding="utf-8")
    monkeypatch.setenv("WECHAT_OPENAPI_CONFIG", str(config_path))

    assert load_config().http.timeout == 2.0


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.toml")


def test_defaults() -> None:
    config = build_config({})

    assert config.wechat.token_query_name == "access_token"
    assert config.wechat.language == "zh_cn"
    assert config.wechat.token_cache is None
    assert config.http.max_token_retries == 2
    assert config.log.debug is False


def test_negative_retry_budget_rejected() -> None:
    with pytest.raises(ValueError):
        build_config({"http": {"max_token_retries": -1}})


def test_env_provider_uses_aliases() -> None:
    provider = EnvSecretProvider(
        env={"MY_APP_ID": "wx-env", "WECHAT_APP_SECRET": "env-secret"},
        aliases={APP_ID_KEY: "MY_APP_ID"},
    )

    assert provider.get_secret(APP_ID_KEY) == "wx-env"
    assert provider.get_secret(APP_SECRET_KEY) == "env-secret"
    with pytest.raises(SecretNotFoundError):
        provider.get_secret("wechat.token")


def test_chained_provider_falls_through(tmp_path: Path) -> None:
    secrets_file = tmp_path / "secrets.ini"
    secrets_file.write_text("[wechat]\napp_secret = file-secret\n", encoding="utf-8")
    chain = ChainedSecretProvider(
        [
            MappingSecretProvider({APP_ID_KEY: "wx-inline", APP_SECRET_KEY: None}),
            EnvSecretProvider(env={}),
            FileSecretProvider(secrets_file),
        ]
    )

    assert chain.get_secret(APP_ID_KEY) == "wx-inline"
    assert chain.get_secret(APP_SECRET_KEY) == "file-secret"
    with pytest.raises(SecretNotFoundError):
        chain.get_secret("wechat.aes_key")


def test_build_secret_provider_prefers_inline_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OA_SECRET", "from-env")
    monkeypatch.setenv("WECHAT_APP_ID", "wx-env")
    config = build_config(
        {"wechat": {"app_id": "wx-inline", "app_secret_env": "OA_SECRET"}}, base_dir=tmp_path
    )

    provider = build_secret_provider(config.wechat)

    assert provider.get_secret(APP_ID_KEY) == "wx-inline"
    assert provider.get_secret(APP_SECRET_KEY) == "from-env"
