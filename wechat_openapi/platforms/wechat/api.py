"""WeChat access token authorities."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Optional, Protocol
from urllib.parse import urlencode

from wechat_openapi.core import HttpClient, HttpRequest, WeChatApiError


@dataclass(slots=True)
class AccessTokenResponse:
    """Parsed access token response."""

    token: str
    expires_at: datetime


class TokenAuthority(Protocol):
    """Issues access tokens for an AppID/AppSecret pair."""

    def fetch_access_token(self, app_id: str, app_secret: str) -> AccessTokenResponse:
        """Return a freshly issued token."""


def _decode(text: str, *, status: int | None = None) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise WeChatApiError(
            "解析微信响应失败", details={"status": status, "body": text[:200]}
        ) from exc
    if not isinstance(data, dict):
        raise WeChatApiError("解析微信响应失败", details={"body": text[:200]})
    return data


def _check_errcode(data: dict[str, Any], action: str) -> None:
    if "errcode" in data and data.get("errcode") != 0:
        raise WeChatApiError(
            f"{action}失败",
            details={"errcode": data.get("errcode"), "errmsg": data.get("errmsg")},
        )


def _issued(data: dict[str, Any], field: str) -> AccessTokenResponse:
    token = data.get(field)
    expires_in = data.get("expires_in")
    if not token or not expires_in:
        raise WeChatApiError(f"响应缺少 {field} 或 expires_in 字段", details=data)

    try:
        expires_seconds = int(expires_in)
    except (TypeError, ValueError) as exc:
        raise WeChatApiError("expires_in 字段格式不正确", details={"expires_in": expires_in}) from exc

    expires_at = datetime.now(tz=UTC) + timedelta(seconds=expires_seconds)
    return AccessTokenResponse(token=str(token), expires_at=expires_at)


class WeChatApiClient:
    """Client-credential grant against ``cgi-bin/token``."""

    _TOKEN_URL = "https://api.weixin.qq.com/cgi-bin/token"

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    def fetch_access_token(self, app_id: str, app_secret: str) -> AccessTokenResponse:
        """Retrieve a fresh access token from WeChat."""
        params = {
            "grant_type": "client_credential",
            "appid": app_id,
            "secret": app_secret,
        }
        url = f"{self._TOKEN_URL}?{urlencode(params)}"
        response = self._http.send(HttpRequest(url=url, method="GET"))

        data = _decode(response.text, status=response.status)
        _check_errcode(data, "获取 access_token ")
        return _issued(data, "access_token")


class WeChatAuthorizerTokenClient:
    """Authorizer tokens for an Official Account managed by a third-party platform.

    ``fetch_access_token`` receives the platform's component AppID/AppSecret.
    It obtains a ``component_access_token`` with the latest
    ``component_verify_ticket`` (kept in memory until shortly before expiry)
    and exchanges the authorizer's refresh token for an
    ``authorizer_access_token``. WeChat may rotate the refresh token on every
    exchange; the newest one is kept and passed to ``on_refresh_token``.
    """

    _COMPONENT_TOKEN_URL = "https://api.weixin.qq.com/cgi-bin/component/api_component_token"
    _AUTHORIZER_TOKEN_URL = "https://api.weixin.qq.com/cgi-bin/component/api_authorizer_token"
    _PRE_AUTH_CODE_URL = "https://api.weixin.qq.com/cgi-bin/component/api_create_preauthcode"
    _REFRESH_MARGIN = timedelta(minutes=5)

    def __init__(
        self,
        http_client: HttpClient,
        *,
        authorizer_app_id: str,
        verify_ticket: Callable[[], str],
        refresh_token: Callable[[], str],
        on_refresh_token: Callable[[str], None] | None = None,
    ) -> None:
        self._http = http_client
        self._authorizer_app_id = authorizer_app_id
        self._verify_ticket = verify_ticket
        self._initial_refresh_token = refresh_token
        self._on_refresh_token = on_refresh_token
        self._refresh_token: Optional[str] = None
        self._component_token: Optional[AccessTokenResponse] = None
        self._lock = threading.Lock()

    @property
    def authorizer_app_id(self) -> str:
        return self._authorizer_app_id

    @property
    def authorizer_refresh_token(self) -> str:
        with self._lock:
            return self._current_refresh_token()

    def fetch_access_token(self, app_id: str, app_secret: str) -> AccessTokenResponse:
        with self._lock:
            component_token = self._component_access_token(app_id, app_secret)
            data = self._post(
                self._AUTHORIZER_TOKEN_URL,
                component_token,
                {
                    "component_appid": app_id,
                    "authorizer_appid": self._authorizer_app_id,
                    "authorizer_refresh_token": self._current_refresh_token(),
                },
                "获取 authorizer_access_token ",
            )
            issued = _issued(data, "authorizer_access_token")
            rotated = data.get("authorizer_refresh_token")
            if rotated and rotated != self._refresh_token:
                self._refresh_token = str(rotated)
                if self._on_refresh_token is not None:
                    self._on_refresh_token(self._refresh_token)
            return issued

    def create_pre_auth_code(self, app_id: str, app_secret: str) -> AccessTokenResponse:
        """Issue a ``pre_auth_code`` for the authorization page."""
        with self._lock:
            component_token = self._component_access_token(app_id, app_secret)
            data = self._post(
                self._PRE_AUTH_CODE_URL,
                component_token,
                {"component_appid": app_id},
                "获取 pre_auth_code ",
            )
            return _issued(data, "pre_auth_code")

    def _current_refresh_token(self) -> str:
        if self._refresh_token is None:
            token = self._initial_refresh_token()
            if not token:
                raise WeChatApiError("缺少 authorizer_refresh_token")
            self._refresh_token = token
        return self._refresh_token

    def _component_access_token(self, app_id: str, app_secret: str) -> str:
        cached = self._component_token
        if cached is not None and cached.expires_at > datetime.now(tz=UTC) + self._REFRESH_MARGIN:
            return cached.token

        ticket = self._verify_ticket()
        if not ticket:
            raise WeChatApiError("缺少 component_verify_ticket，无法获取 component_access_token")
        data = self._post(
            self._COMPONENT_TOKEN_URL,
            None,
            {
                "component_appid": app_id,
                "component_appsecret": app_secret,
                "component_verify_ticket": ticket,
            },
            "获取 component_access_token ",
        )
        self._component_token = _issued(data, "component_access_token")
        return self._component_token.token

    def _post(
        self,
        url: str,
        component_token: str | None,
        payload: dict[str, Any],
        action: str,
    ) -> dict[str, Any]:
        if component_token is not None:
            url = f"{url}?{urlencode({'component_access_token': component_token})}"
        response = self._http.send(
            HttpRequest(
                url=url,
                method="POST",
                headers={"Content-Type": "application/json; charset=utf-8"},
                json_body=payload,
            )
        )
        data = _decode(response.text, status=response.status)
        _check_errcode(data, action)
        return data
