from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlsplit

import pytest

from wechat_openapi.core import (
    CredentialUnavailable,
    HttpApiError,
    HttpRequest,
    HttpResponse,
    ResponseDecodeError,
    TransportFailure,
    WeChatApiError,
)
from wechat_openapi.platforms.wechat import (
    AccessTokenResponse,
    RequestDescriptor,
    WeChatCredentialStore,
    WeChatRequestPipeline,
)
from wechat_openapi.security import APP_ID_KEY, APP_SECRET_KEY, MappingSecretProvider


class StubTransport:
    def __init__(self, *replies: str | Exception) -> None:
        self._replies = list(replies)
        self.requests: list[HttpRequest] = []

    def send(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return HttpResponse(
            url=request.url,
            status=200,
            headers={"Content-Type": "application/json"},
            body=reply.encode("utf-8"),
            text=reply,
            elapsed=0.0,
        )

    def query_of(self, index: int) -> dict[str, list[str]]:
        return parse_qs(urlsplit(self.requests[index].url).query)


class StubAuthority:
    def __init__(self, *tokens: str | Exception) -> None:
        self._tokens = list(tokens)
        self.calls = 0

    def fetch_access_token(self, app_id: str, app_secret: str) -> AccessTokenResponse:
        self.calls += 1
        token = self._tokens.pop(0)
        if isinstance(token, Exception):
            raise token
        return AccessTokenResponse(
            token=token, expires_at=datetime.now(tz=UTC) + timedelta(seconds=7200)
        )


def _store(authority: StubAuthority) -> WeChatCredentialStore:
    secrets = MappingSecretProvider({APP_ID_KEY: "wx123", APP_SECRET_KEY: "secret"})
    return WeChatCredentialStore(authority=authority, secrets=secrets)


def _pipeline(
    transport: StubTransport,
    authority: StubAuthority,
    *,
    language: str = "en",
    max_retries: int = 2,
    logger: logging.Logger | None = None,
) -> tuple[WeChatRequestPipeline, WeChatCredentialStore]:
    store = _store(authority)
    pipeline = WeChatRequestPipeline(
        transport,
        store,
        language=language,
        max_retries=max_retries,
        logger=logger,
    )
    return pipeline, store


def test_success_returns_full_body_without_refresh() -> None:
    transport = StubTransport('{"errcode":0,"errmsg":"ok","data":"ok","items":[1,2]}')
    authority = StubAuthority("T1")
    pipeline, _ = _pipeline(transport, authority)

    result = pipeline.get("https://api.weixin.qq.com/cgi-bin/tags/get")

    assert result["data"] == "ok"
    assert result["items"] == [1, 2]
    assert result.errcode == 0
    assert authority.calls == 1
    assert len(transport.requests) == 1


def test_body_without_errcode_is_success() -> None:
    transport = StubTransport('{"tags":[{"id":2,"name":"星标组"}]}')
    pipeline, _ = _pipeline(transport, StubAuthority("T1"))

    result = pipeline.get("https://api.weixin.qq.com/cgi-bin/tags/get")

    assert result.errcode is None
    assert result["tags"][0]["name"] == "星标组"


def test_token_is_attached_next_to_existing_query() -> None:
    transport = StubTransport('{"errcode":0}')
    pipeline, _ = _pipeline(transport, StubAuthority("T1"))

    pipeline.request(RequestDescriptor("GET", "https://example.com/api", query={"a": 1}))

    query = transport.query_of(0)
    assert query["a"] == ["1"]
    assert query["access_token"] == ["T1"]


def test_expired_token_is_refreshed_and_request_retried() -> None:
    transport = StubTransport('{"errcode":42001,"errmsg":"access_token expired"}', '{"errcode":0,"data":"ok"}')
    authority = StubAuthority("T1", "T2")
    pipeline, store = _pipeline(transport, authority)

    result = pipeline.post_json("https://example.com/api", {"tag": {"name": "VIP"}})

    assert result["data"] == "ok"
    assert authority.calls == 2
    assert transport.query_of(0)["access_token"] == ["T1"]
    assert transport.query_of(1)["access_token"] == ["T2"]
    assert transport.requests[1].json_body == {"tag": {"name": "VIP"}}
    assert store.current_token is not None
    assert store.current_token.value == "T2"


def test_retries_stop_after_two_refreshes() -> None:
    body = '{"errcode":40001,"errmsg":"invalid credential"}'
    transport = StubTransport(body, body, body)
    authority = StubAuthority("T1", "T2", "T3")
    pipeline, _ = _pipeline(transport, authority)

    with pytest.raises(HttpApiError) as excinfo:
        pipeline.get("https://example.com/api")

    assert excinfo.value.code == 40001
    assert excinfo.value.message == "invalid credential"
    assert excinfo.value.details["attempts"] == 3
    assert len(transport.requests) == 3
    assert authority.calls == 3


def test_zero_retry_budget_fails_on_first_expired_token() -> None:
    transport = StubTransport('{"errcode":42001,"errmsg":"access_token expired"}')
    authority = StubAuthority("T1")
    pipeline, _ = _pipeline(transport, authority, max_retries=0)

    with pytest.raises(HttpApiError) as excinfo:
        pipeline.get("https://example.com/api")

    assert excinfo.value.code == 42001
    assert authority.calls == 1


def test_other_error_codes_fail_without_retry() -> None:
    transport = StubTransport('{"errcode":40003,"errmsg":""}')
    authority = StubAuthority("T1")
    pipeline, _ = _pipeline(transport, authority)

    with pytest.raises(HttpApiError) as excinfo:
        pipeline.get("https://example.com/api")

    assert excinfo.value.code == 40003
    assert excinfo.value.message == "Unknown"
    assert len(transport.requests) == 1
    assert authority.calls == 1


def test_error_message_is_localized() -> None:
    transport = StubTransport('{"errcode":40003,"errmsg":"invalid openid"}')
    pipeline, _ = _pipeline(transport, StubAuthority("T1"), language="zh_CN")

    with pytest.raises(HttpApiError) as excinfo:
        pipeline.get("https://example.com/api")

    assert excinfo.value.message == "不合法的 OpenID"
    assert "不合法的 OpenID" in str(excinfo.value)


def test_transport_failure_is_not_retried() -> None:
    transport = StubTransport(TransportFailure("无法连接至微信服务器"))
    authority = StubAuthority("T1")
    pipeline, _ = _pipeline(transport, authority)

    with pytest.raises(TransportFailure):
        pipeline.get("https://example.com/api")

    assert authority.calls == 1


def test_refresh_failure_propagates_and_keeps_old_token() -> None:
    transport = StubTransport('{"errcode":40001,"errmsg":"invalid credential"}')
    authority = StubAuthority("T1", WeChatApiError("获取 access_token 失败", details={"errcode": -1}))
    pipeline, store = _pipeline(transport, authority)

    with pytest.raises(CredentialUnavailable):
        pipeline.get("https://example.com/api")

    assert store.current_token is not None
    assert store.current_token.value == "T1"
    assert len(transport.requests) == 1


def test_pipeline_without_credentials_never_refreshes() -> None:
    transport = StubTransport('{"errcode":42001,"errmsg":"access_token expired"}')
    pipeline = WeChatRequestPipeline(transport, None, language="en")

    with pytest.raises(HttpApiError) as excinfo:
        pipeline.get("https://example.com/api", {"a": "b"})

    assert excinfo.value.code == 42001
    assert "access_token" not in transport.query_of(0)


def test_non_json_body_raises_decode_error() -> None:
    transport = StubTransport("<html>502 Bad Gateway</html>")
    pipeline, _ = _pipeline(transport, StubAuthority("T1"))

    with pytest.raises(ResponseDecodeError):
        pipeline.get("https://example.com/api")


def test_post_sends_json_headers() -> None:
    transport = StubTransport('{"errcode":0}')
    pipeline, _ = _pipeline(transport, StubAuthority("T1"))

    pipeline.post_json("https://example.com/api", {"name": "标签"})

    request = transport.requests[0]
    assert request.method == "POST"
    assert request.json_body == {"name": "标签"}
    assert request.headers["Content-Type"].startswith("application/json")


def test_retry_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.pipeline")
    transport = StubTransport('{"errcode":42001}', '{"errcode":0}')
    pipeline, _ = _pipeline(transport, StubAuthority("T1", "T2"), logger=logger)

    with caplog.at_level(logging.DEBUG, logger="tests.pipeline"):
        pipeline.get("https://example.com/api")

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("Request: GET https://example.com/api") for message in messages)
    assert "Retry with Request Token: T2" in messages
    assert any(
        message.startswith("Retry with Request Uri:") and "access_token=T2" in message
        for message in messages
    )


def test_descriptor_replaces_token_already_in_url() -> None:
    descriptor = RequestDescriptor("GET", "https://example.com/api?access_token=OLD&x=1")

    updated = descriptor.with_query_value("access_token", "NEW")

    query = parse_qs(urlsplit(updated.uri).query)
    assert query == {"access_token": ["NEW"], "x": ["1"]}
    assert descriptor.query == {}


def test_empty_errmsg_stays_unknown_with_default_language() -> None:
    transport = StubTransport('{"errcode":40003,"errmsg":""}')
    pipeline = WeChatRequestPipeline(transport, _store(StubAuthority("T1")))

    with pytest.raises(HttpApiError) as excinfo:
        pipeline.get("https://example.com/api")

    assert pipeline.language == "zh_cn"
    assert excinfo.value.code == 40003
    assert excinfo.value.message == "Unknown"


def test_retry_reuses_token_refreshed_by_another_caller() -> None:
    authority = StubAuthority("T1", "T2")
    store = _store(authority)

    class RacingTransport(StubTransport):
        def send(self, request: HttpRequest) -> HttpResponse:
            if not self.requests:
                # a concurrent call hit 40001 with T1 as well and refreshed first
                store.get_token(force_refresh=True, stale="T1")
            return super().send(request)

    transport = RacingTransport('{"errcode":40001,"errmsg":"invalid credential"}', '{"errcode":0}')
    pipeline = WeChatRequestPipeline(transport, store, language="en")

    pipeline.get("https://example.com/api")

    assert authority.calls == 2
    assert transport.query_of(0)["access_token"] == ["T1"]
    assert transport.query_of(1)["access_token"] == ["T2"]
