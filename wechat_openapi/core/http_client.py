"""HTTP transport backed by ``requests``."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from ..settings import HttpSettings
from .errors import TransportFailure


_LOGGER = logging.getLogger(__name__)
_JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(slots=True)
class HttpRequest:
    url: str
    method: str = "GET"
    headers: Mapping[str, str] | None = None
    json_body: Any = None
    files: Mapping[str, Any] | None = None
    form: Mapping[str, str] | None = None
    timeout: float | None = None


@dataclass(slots=True)
class HttpResponse:
    url: str
    status: int
    headers: Mapping[str, str]
    body: bytes
    text: str
    elapsed: float


class HttpClient:
    """Sends a single request and returns the raw response.

    Status codes are not interpreted here; WeChat reports application errors
    inside 200 responses, so classification happens on the body.
    """

    def __init__(
        self,
        *,
        http_settings: HttpSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._http_settings = http_settings
        self._session = session or requests.Session()

    @property
    def timeout(self) -> float:
        return self._http_settings.timeout

    def send(self, request: HttpRequest) -> HttpResponse:
        headers = dict(request.headers or {})
        kwargs: dict[str, Any] = {}
        if request.json_body is not None:
            headers.setdefault("Content-Type", _JSON_CONTENT_TYPE)
            # WeChat stores the bytes verbatim, so non-ASCII text must not be \u-escaped.
            kwargs["data"] = json.dumps(request.json_body, ensure_ascii=False).encode("utf-8")
        elif request.files is not None:
            kwargs["files"] = request.files
            if request.form:
                kwargs["data"] = dict(request.form)

        timeout = request.timeout if request.timeout is not None else self._http_settings.timeout
        start_time = time.monotonic()
        try:
            resp = self._session.request(
                request.method.upper(),
                request.url,
                headers=headers or None,
                timeout=timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            raise TransportFailure(
                "请求微信服务器超时",
                details={"method": request.method.upper(), "timeout": timeout, "reason": str(exc)},
            ) from exc
        except requests.RequestException as exc:
            raise TransportFailure(
                "无法连接至微信服务器",
                details={"method": request.method.upper(), "reason": str(exc)},
            ) from exc

        elapsed = time.monotonic() - start_time
        body = resp.content or b""
        _LOGGER.debug(
            "HTTP %s %s -> %s (%.3fs)",
            request.method.upper(),
            resp.url,
            resp.status_code,
            elapsed,
        )
        return HttpResponse(
            url=resp.url,
            status=resp.status_code,
            headers=dict(resp.headers.items()),
            body=body,
            # WeChat often omits the charset; requests would then guess ISO-8859-1.
            text=body.decode("utf-8", errors="replace"),
            elapsed=elapsed,
        )

    def close(self) -> None:
        self._session.close()
