"""Classification of WeChat response bodies."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from wechat_openapi.core import ResponseDecodeError

TOKEN_ERROR_CODES = frozenset({40001, 42001})
ERRCODE_MARKER = "errcode"
UNKNOWN_MESSAGE = "Unknown"


class Verdict(enum.Enum):
    SUCCESS = "success"
    RETRYABLE_TOKEN = "retryable_token"
    FATAL = "fatal"


@dataclass(slots=True, frozen=True)
class Classification:
    verdict: Verdict
    code: int = 0
    message: str = ""

    @property
    def is_success(self) -> bool:
        return self.verdict is Verdict.SUCCESS

    @property
    def is_retryable(self) -> bool:
        return self.verdict is Verdict.RETRYABLE_TOKEN


_SUCCESS = Classification(Verdict.SUCCESS)


class ErrorClassifier:
    """Maps a response body onto success, token expiry or a fatal error.

    The token-expiry branch is only taken when the raw text contains the
    ``errcode`` marker (case-insensitive substring match), before the decoded
    code is consulted.
    """

    def __init__(self, retryable_codes: Iterable[int] = TOKEN_ERROR_CODES) -> None:
        self._retryable_codes = frozenset(retryable_codes)

    @property
    def retryable_codes(self) -> frozenset[int]:
        return self._retryable_codes

    def decode(self, text: str) -> dict[str, Any]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResponseDecodeError("解析微信响应失败", details={"body": text[:200]}) from exc
        if not isinstance(data, dict):
            raise ResponseDecodeError("微信响应不是 JSON 对象", details={"body": text[:200]})
        return data

    def classify(self, text: str, decoded: Mapping[str, Any] | None = None) -> Classification:
        data = decoded if decoded is not None else self.decode(text)
        code = _coerce_code(data.get("errcode"))
        if not code:
            return _SUCCESS

        message = data.get("errmsg") or UNKNOWN_MESSAGE
        if ERRCODE_MARKER in text.lower() and code in self._retryable_codes:
            return Classification(Verdict.RETRYABLE_TOKEN, code, str(message))
        return Classification(Verdict.FATAL, code, str(message))


def _coerce_code(raw: Any) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ResponseDecodeError("errcode 字段格式不正确", details={"errcode": raw})
    if isinstance(raw, int):
        return raw
    try:
        number = float(str(raw).strip())
    except ValueError as exc:
        raise ResponseDecodeError("errcode 字段格式不正确", details={"errcode": raw}) from exc
    if not number.is_integer():
        raise ResponseDecodeError("errcode 字段格式不正确", details={"errcode": raw})
    return int(number)
