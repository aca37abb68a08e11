"""Exception hierarchy shared by the transport and the WeChat pipeline."""

from __future__ import annotations

import json
from typing import Any, Mapping


class WeChatApiError(RuntimeError):
    """Raised when WeChat API calls fail."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})

    def __str__(self) -> str:
        base = super().__str__()
        if not self.details:
            return base
        try:
            detail_repr = json.dumps(self.details, ensure_ascii=False)
        except TypeError:
            detail_repr = str(self.details)
        return f"{base} | 详情: {detail_repr}"


class TransportFailure(WeChatApiError):
    """Connection errors and timeouts. Never retried by the pipeline."""


class CredentialUnavailable(WeChatApiError):
    """The access token could not be obtained from the token authority."""


class ResponseDecodeError(WeChatApiError):
    """The response body is not a JSON object."""


class HttpApiError(WeChatApiError):
    """WeChat answered with a non-zero ``errcode``."""

    def __init__(
        self,
        message: str,
        code: int,
        *,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        merged = {"errcode": code, "errmsg": message}
        merged.update(details or {})
        super().__init__(message, details=merged)
        self.code = code
        self.message = message


__all__ = [
    "CredentialUnavailable",
    "HttpApiError",
    "ResponseDecodeError",
    "TransportFailure",
    "WeChatApiError",
]
