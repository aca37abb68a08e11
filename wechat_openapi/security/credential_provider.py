"""Secret resolution for AppID/AppSecret pairs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from configparser import ConfigParser
from os import environ
from pathlib import Path
from typing import Iterable, Mapping

APP_ID_KEY = "wechat.app_id"
APP_SECRET_KEY = "wechat.app_secret"
COMPONENT_VERIFY_TICKET_KEY = "wechat.component_verify_ticket"
AUTHORIZER_REFRESH_TOKEN_KEY = "wechat.authorizer_refresh_token"


class SecretNotFoundError(KeyError):
    """Raised when a secret cannot be resolved."""


class SecretProvider(ABC):
    """Abstract secret lookup contract."""

    @abstractmethod
    def get_secret(self, key: str) -> str:
        """Return the secret associated with ``key``."""


class EnvSecretProvider(SecretProvider):
    """Reads secrets from environment variables.

    ``wechat.app_id`` maps to ``WECHAT_APP_ID`` unless ``aliases`` names a
    different variable for the key.
    """

    def __init__(
        self,
        *,
        env: Mapping[str, str] | None = None,
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self._env = env if env is not None else environ
        self._aliases = dict(aliases or {})

    def get_secret(self, key: str) -> str:
        variable = self._aliases.get(key) or key.upper().replace(".", "_")
        value = self._env.get(variable)
        if not value:
            raise SecretNotFoundError(variable)
        return value


class FileSecretProvider(SecretProvider):
    """Loads secrets from INI-style files (``[wechat]`` / ``app_id = ...``)."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._parser = ConfigParser()
        if path.exists():
            self._parser.read(path, encoding="utf-8")

    def get_secret(self, key: str) -> str:
        section, _, option = key.partition(".")
        if not section or not option:
            raise SecretNotFoundError(key)
        if self._parser.has_option(section, option):
            value = self._parser.get(section, option)
            if value:
                return value
        raise SecretNotFoundError(key)


class MappingSecretProvider(SecretProvider):
    """Serves secrets given inline, e.g. from the ``[wechat]`` config table."""

    def __init__(self, mapping: Mapping[str, str | None]) -> None:
        self._mapping = mapping

    def get_secret(self, key: str) -> str:
        value = self._mapping.get(key)
        if not value:
            raise SecretNotFoundError(key)
        return value


class ChainedSecretProvider(SecretProvider):
    """Tries multiple providers until one returns a secret."""

    def __init__(self, providers: Iterable[SecretProvider]) -> None:
        self._providers = tuple(providers)

    def get_secret(self, key: str) -> str:
        for provider in self._providers:
            try:
                return provider.get_secret(key)
            except SecretNotFoundError:
                continue
        raise SecretNotFoundError(key)


__all__ = [
    "APP_ID_KEY",
    "APP_SECRET_KEY",
    "AUTHORIZER_REFRESH_TOKEN_KEY",
    "COMPONENT_VERIFY_TICKET_KEY",
    "ChainedSecretProvider",
    "EnvSecretProvider",
    "FileSecretProvider",
    "MappingSecretProvider",
    "SecretNotFoundError",
    "SecretProvider",
]
