"""Access-token aware request pipeline for WeChat JSON APIs."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from wechat_openapi.core import HttpApiError, HttpClient, HttpRequest, HttpResponse

from .classifier import UNKNOWN_MESSAGE, Classification, ErrorClassifier
from .credentials import WeChatCredentialStore
from .translation import CatalogTranslator, MessageTranslator


_LOGGER = logging.getLogger(__name__)
_JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}

DEFAULT_MAX_RETRIES = 2


@dataclass(slots=True, frozen=True)
class RequestDescriptor:
    """One outbound call. Never mutated; credential injection returns a copy."""

    method: str
    url: str
    query: Mapping[str, Any] = field(default_factory=dict)
    payload: Any = None
    files: Mapping[str, Any] | None = None
    form: Mapping[str, str] | None = None

    def with_query_value(self, name: str, value: Any) -> "RequestDescriptor":
        query = dict(self.query)
        query[name] = value
        return replace(self, query=query)

    @property
    def uri(self) -> str:
        """The URL with ``query`` merged in; ``query`` wins over values already in the URL."""
        parts = urlsplit(self.url)
        merged = dict(parse_qsl(parts.query, keep_blank_values=True))
        merged.update({str(key): _query_value(value) for key, value in self.query.items()})
        return urlunsplit(parts._replace(query=urlencode(merged)))

    @property
    def headers(self) -> dict[str, str]:
        return dict(_JSON_HEADERS) if self.payload is not None else {}


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


class ResponseEnvelope(dict):
    """Decoded response body."""

    @property
    def errcode(self) -> int | None:
        value = self.get("errcode")
        return None if value is None else int(value)

    @property
    def errmsg(self) -> str | None:
        return self.get("errmsg")


@dataclass(slots=True)
class RetryContext:
    attempt_count: int = 0
    last_request: RequestDescriptor | None = None
    last_response: HttpResponse | None = None


class WeChatRequestPipeline:
    """Runs a call through attach-token, send, classify and bounded retry.

    Only ``errcode`` 40001/42001 trigger a forced token refresh and a resend,
    at most ``max_retries`` times. Transport failures, credential failures and
    all other error codes propagate on the first occurrence.
    """

    def __init__(
        self,
        http_client: HttpClient,
        credentials: WeChatCredentialStore | None,
        *,
        classifier: ErrorClassifier | None = None,
        translator: MessageTranslator | None = None,
        language: str = "zh_cn",
        max_retries: int = DEFAULT_MAX_RETRIES,
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http_client
        self._credentials = credentials
        self._classifier = classifier or ErrorClassifier()
        self._translator = translator or CatalogTranslator()
        self._language = language
        self._max_retries = max_retries
        self._logger = logger or _LOGGER

    @property
    def credentials(self) -> WeChatCredentialStore | None:
        return self._credentials

    @property
    def language(self) -> str:
        return self._language

    def get(self, url: str, query: Mapping[str, Any] | None = None) -> ResponseEnvelope:
        return self.request(RequestDescriptor("GET", url, query=dict(query or {})))

    def post_json(
        self,
        url: str,
        payload: Any,
        query: Mapping[str, Any] | None = None,
    ) -> ResponseEnvelope:
        return self.request(
            RequestDescriptor("POST", url, query=dict(query or {}), payload=payload)
        )

    def upload(
        self,
        url: str,
        files: Mapping[str, Any],
        *,
        query: Mapping[str, Any] | None = None,
        form: Mapping[str, str] | None = None,
    ) -> ResponseEnvelope:
        return self.request(
            RequestDescriptor("POST", url, query=dict(query or {}), files=files, form=form)
        )

    def request(self, descriptor: RequestDescriptor) -> ResponseEnvelope:
        context = RetryContext()
        current = self._attach(descriptor)
        while True:
            context.attempt_count += 1
            context.last_request = current
            response = self._send(current)
            context.last_response = response

            decoded = self._classifier.decode(response.text)
            verdict = self._classifier.classify(response.text, decoded)
            if verdict.is_success:
                return ResponseEnvelope(decoded)

            retries = context.attempt_count - 1
            credentials = self._credentials
            if verdict.is_retryable and credentials is not None:
                if retries < self._max_retries:
                    current = self._reattach(current, credentials)
                    continue
            raise self._api_error(verdict, context)

    def _attach(self, descriptor: RequestDescriptor) -> RequestDescriptor:
        if self._credentials is None:
            return descriptor
        token = self._credentials.get_token()
        return descriptor.with_query_value(self._credentials.query_name, token)

    def _reattach(
        self, descriptor: RequestDescriptor, credentials: WeChatCredentialStore
    ) -> RequestDescriptor:
        stale = descriptor.query.get(credentials.query_name)
        token = credentials.get_token(force_refresh=True, stale=stale)
        refreshed = descriptor.with_query_value(credentials.query_name, token)
        self._logger.debug("Retry with Request Token: %s", token)
        self._logger.debug("Retry with Request Uri: %s", refreshed.uri)
        return refreshed

    def _send(self, descriptor: RequestDescriptor) -> HttpResponse:
        method = descriptor.method.upper()
        uri = descriptor.uri
        headers = descriptor.headers
        self._logger.debug(
            "Request: %s %s %s",
            method,
            uri,
            json.dumps(self._options(descriptor), ensure_ascii=False, default=str),
            extra={"event": "wechat.request", "method": method},
        )
        self._logger.debug("Request headers: %s", json.dumps(headers))
        return self._http.send(
            HttpRequest(
                url=uri,
                method=method,
                headers=headers,
                json_body=descriptor.payload,
                files=descriptor.files,
                form=descriptor.form,
            )
        )

    def _options(self, descriptor: RequestDescriptor) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if descriptor.payload is not None:
            options["json"] = descriptor.payload
        if descriptor.files:
            options["files"] = sorted(descriptor.files)
        if descriptor.form:
            options["form"] = dict(descriptor.form)
        return options

    def _api_error(self, verdict: Classification, context: RetryContext) -> HttpApiError:
        message = verdict.message
        if message != UNKNOWN_MESSAGE:
            message = self._translator.translate(verdict.code, message, self._language)
        return HttpApiError(
            message,
            verdict.code,
            details={"attempts": context.attempt_count},
        )
