from __future__ import annotations

import pytest

from wechat_openapi.core import ResponseDecodeError
from wechat_openapi.platforms.wechat import ErrorClassifier, Verdict


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


@pytest.mark.parametrize(
    "body",
    ['{"errcode":0,"errmsg":"ok"}', '{"menu":{"button":[]}}', '{"errcode":"0"}'],
)
def test_zero_or_missing_errcode_is_success(classifier: ErrorClassifier, body: str) -> None:
    assert classifier.classify(body).verdict is Verdict.SUCCESS


@pytest.mark.parametrize("code", [40001, 42001])
def test_token_codes_are_retryable(classifier: ErrorClassifier, code: int) -> None:
    result = classifier.classify(f'{{"errcode":{code},"errmsg":"token problem"}}')

    assert result.is_retryable
    assert result.code == code
    assert result.message == "token problem"


def test_string_errcode_is_coerced(classifier: ErrorClassifier) -> None:
    result = classifier.classify('{"errcode":"42001"}')

    assert result.is_retryable
    assert result.code == 42001


def test_other_codes_are_fatal_with_default_message(classifier: ErrorClassifier) -> None:
    result = classifier.classify('{"errcode":40003,"errmsg":""}')

    assert result.verdict is Verdict.FATAL
    assert result.code == 40003
    assert result.message == "Unknown"


def test_missing_errmsg_defaults_to_unknown(classifier: ErrorClassifier) -> None:
    result = classifier.classify('{"errcode":45009}')

    assert result.verdict is Verdict.FATAL
    assert result.message == "Unknown"


def test_retry_requires_errcode_marker_in_raw_text(classifier: ErrorClassifier) -> None:
    result = classifier.classify("{}", decoded={"errcode": 40001})

    assert result.verdict is Verdict.FATAL
    assert result.code == 40001


def test_marker_match_is_case_insensitive(classifier: ErrorClassifier) -> None:
    result = classifier.classify('{"ERRCODE":1}', decoded={"errcode": 42001})

    assert result.is_retryable


def test_custom_retryable_codes() -> None:
    classifier = ErrorClassifier(retryable_codes={40001, 40014, 42001})

    assert classifier.classify('{"errcode":40014}').is_retryable


def test_invalid_json_raises(classifier: ErrorClassifier) -> None:
    with pytest.raises(ResponseDecodeError):
        classifier.classify("not json")


def test_json_array_raises(classifier: ErrorClassifier) -> None:
    with pytest.raises(ResponseDecodeError):
        classifier.classify("[1, 2]")


def test_malformed_errcode_raises(classifier: ErrorClassifier) -> None:
    with pytest.raises(ResponseDecodeError):
        classifier.classify('{"errcode":"abc"}')


def test_integral_float_errcode_is_accepted(classifier: ErrorClassifier) -> None:
    assert classifier.classify('{"errcode":0.0}').is_success

    result = classifier.classify('{"errcode":42001.0,"errmsg":"access_token expired"}')

    assert result.is_retryable
    assert result.code == 42001


def test_fractional_errcode_raises(classifier: ErrorClassifier) -> None:
    with pytest.raises(ResponseDecodeError):
        classifier.classify('{"errcode":40001.5}')
