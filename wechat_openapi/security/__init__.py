"""Security utilities package."""

from __future__ import annotations

from .credential_provider import (
    APP_ID_KEY,
    APP_SECRET_KEY,
    AUTHORIZER_REFRESH_TOKEN_KEY,
    COMPONENT_VERIFY_TICKET_KEY,
    ChainedSecretProvider,
    EnvSecretProvider,
    FileSecretProvider,
    MappingSecretProvider,
    SecretNotFoundError,
    SecretProvider,
)

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
