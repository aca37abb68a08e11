"""Wires configuration, transport, credentials and endpoint groups together."""

from __future__ import annotations

import logging
from typing import Callable

from ..core import HttpClient, WeChatApiError
from ..platforms.wechat import (
    CatalogTranslator,
    MessageTranslator,
    TokenAuthority,
    WeChatApiClient,
    WeChatAuthorizerTokenClient,
    WeChatCredentialStore,
    WeChatDraftClient,
    WeChatMaterialClient,
    WeChatMenuClient,
    WeChatRequestPipeline,
    WeChatTagClient,
    WeChatUserClient,
)
from ..security import (
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
from ..settings import AppConfig, WeChatSettings
from ..utils.logging import ensure_logging


def build_secret_provider(settings: WeChatSettings) -> SecretProvider:
    """Inline config values first, then environment variables, then the secrets file."""
    providers: list[SecretProvider] = [
        MappingSecretProvider(
            {
                APP_ID_KEY: settings.app_id,
                APP_SECRET_KEY: settings.app_secret,
                COMPONENT_VERIFY_TICKET_KEY: settings.component_verify_ticket,
                AUTHORIZER_REFRESH_TOKEN_KEY: settings.authorizer_refresh_token,
            }
        ),
        EnvSecretProvider(
            aliases={APP_ID_KEY: settings.app_id_env, APP_SECRET_KEY: settings.app_secret_env}
        ),
    ]
    if settings.secrets_file is not None:
        providers.append(FileSecretProvider(settings.secrets_file))
    return ChainedSecretProvider(providers)


def _secret_source(secrets: SecretProvider, key: str) -> Callable[[], str]:
    def read() -> str:
        try:
            return secrets.get_secret(key)
        except SecretNotFoundError as exc:
            raise WeChatApiError(f"缺少 {key}", details={"key": str(exc)}) from exc

    return read


def build_token_authority(
    settings: WeChatSettings, http_client: HttpClient, secrets: SecretProvider
) -> TokenAuthority:
    """Client-credential grant, or authorizer tokens when ``authorizer_app_id`` is set.

    In authorizer mode ``app_id``/``app_secret`` name the third-party
    platform (component) account.
    """
    if not settings.authorizer_app_id:
        return WeChatApiClient(http_client)
    return WeChatAuthorizerTokenClient(
        http_client,
        authorizer_app_id=settings.authorizer_app_id,
        verify_ticket=_secret_source(secrets, COMPONENT_VERIFY_TICKET_KEY),
        refresh_token=_secret_source(secrets, AUTHORIZER_REFRESH_TOKEN_KEY),
    )


class WeChatApplication:
    """One Official Account: a credential store plus the endpoint groups using it.

    Multi-tenant callers create one application per account; instances share
    nothing except the package logger, which is configured from the first
    application's settings unless the caller configured it beforehand.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        http_client: HttpClient | None = None,
        authority: TokenAuthority | None = None,
        secrets: SecretProvider | None = None,
        translator: MessageTranslator | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        if logger is None:
            logger = ensure_logging(
                level=config.log.level,
                structured=config.log.structured,
                debug=config.log.debug,
                log_file=config.log.file,
            )
        self.logger = logger

        self.http = http_client or HttpClient(http_settings=config.http)
        secrets = secrets or build_secret_provider(config.wechat)
        self.access_token = WeChatCredentialStore(
            authority=authority or build_token_authority(config.wechat, self.http, secrets),
            secrets=secrets,
            token_cache_path=config.wechat.token_cache,
            query_name=config.wechat.token_query_name,
            logger=logger.getChild("credentials"),
        )
        self.pipeline = WeChatRequestPipeline(
            self.http,
            self.access_token,
            translator=translator or CatalogTranslator(),
            language=config.wechat.language,
            max_retries=config.http.max_token_retries,
            logger=logger.getChild("pipeline"),
        )
        self.tags = WeChatTagClient(self.pipeline)
        self.users = WeChatUserClient(self.pipeline)
        self.menus = WeChatMenuClient(self.pipeline)
        self.materials = WeChatMaterialClient(self.pipeline)
        self.drafts = WeChatDraftClient(self.pipeline)

    def close(self) -> None:
        self.http.close()
