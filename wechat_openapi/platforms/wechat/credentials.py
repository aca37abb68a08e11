"""Credential management for WeChat integrations."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Optional

from wechat_openapi.core import CredentialUnavailable, WeChatApiError
from wechat_openapi.security import (
    APP_ID_KEY,
    APP_SECRET_KEY,
    SecretNotFoundError,
    SecretProvider,
)

from .api import AccessTokenResponse, TokenAuthority


_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class WeChatToken:
    """Holds the current access token state."""

    value: str
    expires_at: datetime


class WeChatCredentialStore:
    """Owns the access token of one account and refreshes it on demand.

    Refreshes are serialized. A forced refresh that had to wait for another
    thread's refresh returns that thread's token instead of asking the
    authority again. So does a forced refresh naming a stale token that has
    already been replaced. A burst of expired-token responses costs one
    upstream call.
    """

    _REFRESH_MARGIN = timedelta(minutes=5)

    def __init__(
        self,
        *,
        authority: TokenAuthority,
        secrets: SecretProvider,
        token_cache_path: Path | None = None,
        query_name: str = "access_token",
        logger: logging.Logger | None = None,
    ) -> None:
        self._authority = authority
        self._secrets = secrets
        self._token_cache_path = token_cache_path
        self._query_name = query_name
        self._logger = logger or _LOGGER
        self._lock = threading.Lock()
        self._token: WeChatToken | None = None
        self._generation = 0

    @property
    def query_name(self) -> str:
        """Name of the URL query parameter carrying the token."""
        return self._query_name

    @property
    def current_token(self) -> Optional[WeChatToken]:
        return self._token

    def load_app_id(self) -> str:
        try:
            return self._secrets.get_secret(APP_ID_KEY)
        except SecretNotFoundError as exc:
            raise CredentialUnavailable(
                "缺少微信公众号 AppID，无法获取 access_token", details={"key": str(exc)}
            ) from exc

    def load_app_secret(self) -> str:
        try:
            return self._secrets.get_secret(APP_SECRET_KEY)
        except SecretNotFoundError as exc:
            raise CredentialUnavailable(
                "缺少微信公众号 AppSecret，无法获取 access_token", details={"key": str(exc)}
            ) from exc

    def load_cached_token(self) -> Optional[WeChatToken]:
        """Retrieve the cached token when available and not expired."""
        path = self._token_cache_path
        if path is None or not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            expires_at = datetime.fromisoformat(payload["expires_at"])
            token_value = str(payload["access_token"])
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError):
            return None
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        token = WeChatToken(value=token_value, expires_at=expires_at)
        if self._is_expired(token):
            return None
        return token

    def store_token(self, token: WeChatToken) -> None:
        """Persist the token details for reuse."""
        path = self._token_cache_path
        if path is None:
            return
        payload = {
            "access_token": token.value,
            "expires_at": token.expires_at.isoformat(),
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile("w", delete=False, dir=str(path.parent)) as tmp:
            tmp.write(json.dumps(payload))
            tmp_path = Path(tmp.name)
        tmp_path.replace(path)
        if os.name != "nt":  # set stricter permissions on POSIX systems
            os.chmod(path, 0o600)

    def get_token(self, *, force_refresh: bool = False, stale: str | None = None) -> str:
        """Return the access token, asking the authority first when forced.

        ``stale`` is the token a failed request carried. A forced refresh is
        skipped when the stored token already differs from it.
        """
        observed = self._generation
        if not force_refresh:
            token = self._token
            if token is not None and not self._is_expired(token):
                return token.value

        with self._lock:
            if self._generation != observed and self._token is not None:
                return self._token.value
            current = self._token
            if (
                force_refresh
                and stale is not None
                and current is not None
                and current.value != str(stale)
                and not self._is_expired(current)
            ):
                return current.value
            if not force_refresh:
                token = self._token
                if token is None or self._is_expired(token):
                    token = self.load_cached_token()
                if token is not None:
                    self._token = token
                    return token.value
            return self._refresh().value

    def _refresh(self) -> WeChatToken:
        app_id = self.load_app_id()
        app_secret = self.load_app_secret()
        try:
            response: AccessTokenResponse = self._authority.fetch_access_token(app_id, app_secret)
        except WeChatApiError as exc:
            raise CredentialUnavailable(
                f"刷新 access_token 失败: {exc.args[0] if exc.args else exc}",
                details=exc.details,
            ) from exc

        token = WeChatToken(value=response.token, expires_at=response.expires_at)
        try:
            self.store_token(token)
        except OSError as exc:
            self._logger.warning(
                "写入 access_token 缓存失败 (%s): %s", self._token_cache_path, exc
            )
        self._token = token
        self._generation += 1
        self._logger.info(
            "access_token refreshed",
            extra={"event": "wechat.token.refreshed", "expires_at": token.expires_at.isoformat()},
        )
        return token

    def _is_expired(self, token: WeChatToken) -> bool:
        now = datetime.now(tz=UTC)
        return token.expires_at <= now + self._REFRESH_MARGIN
