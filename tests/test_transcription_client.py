"""Tests for TranscriptionClient."""

from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from errors import CONNECT_TIMEOUT_MESSAGE, RECEIVE_TIMEOUT_MESSAGE
from models import (
    FailureKind,
    ModelSize,
    TranscriptionFailure,
    TranscriptionRequest,
    TranscriptionSuccess,
)
from transcription_client import DEFAULT_TIMEOUT, TranscriptionClient, parse_result

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler) -> TranscriptionClient:
    return TranscriptionClient(base_url="http://test:8000/", transport=httpx.MockTransport(handler))


def _request() -> TranscriptionRequest:
    return TranscriptionRequest(audio_bytes=b"RIFF" + b"\x00" * 40, language="en", model_size=ModelSize.SMALL)


def _raise(exc_type: type[Exception]) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("boom", request=request)

    return handler


# ---------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------

def test_send_posts_multipart_upload() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "result": {"text": "hi"}})

    _client(handler).send(_request())

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert request.url == "http://test:8000/transcribe"
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.read()
    assert b'name="audio_file"; filename="audio.wav"' in body
    assert b'name="language"\r\n\r\nen' in body
    assert b'name="model_size"\r\n\r\nsmall' in body


def test_default_timeouts() -> None:
    assert DEFAULT_TIMEOUT.connect == 30.0
    assert DEFAULT_TIMEOUT.write == 60.0
    assert DEFAULT_TIMEOUT.read == 120.0


# ---------------------------------------------------------------
# Responses
# ---------------------------------------------------------------

def test_success_response_is_parsed() -> None:
    payload = {
        "success": True,
        "message": "ok",
        "result": {
            "text": " hello world ",
            "language": "en",
            "confidence": 0.93,
            "processing_time": 1.25,
            "timings": {"load": 0.1, "inference": 1.1},
            "segments": [{"start": 0.0, "end": 1.0, "text": "hello world"}],
        },
    }
    outcome = _client(lambda r: httpx.Response(200, json=payload)).send(_request())

    assert isinstance(outcome, TranscriptionSuccess)
    assert outcome.ok is True
    assert outcome.result.text == "hello world"
    assert outcome.result.detected_language == "en"
    assert outcome.result.confidence == pytest.approx(0.93)
    assert outcome.result.processing_time_s == pytest.approx(1.25)
    assert outcome.result.timings == {"load": 0.1, "inference": 1.1}
    assert len(outcome.result.segments) == 1


def test_non_200_uses_body_message() -> None:
    outcome = _client(lambda r: httpx.Response(500, json={"message": "model crashed"})).send(_request())

    assert isinstance(outcome, TranscriptionFailure)
    assert outcome.kind == FailureKind.SERVER_ERROR
    assert outcome.status_code == 500
    assert outcome.message == "model crashed"


def test_non_200_falls_back_to_status_text() -> None:
    outcome = _client(lambda r: httpx.Response(503, text="<html>down</html>")).send(_request())

    assert outcome.kind == FailureKind.SERVER_ERROR
    assert outcome.status_code == 503
    assert outcome.message == "HTTP 503: Service Unavailable"


def test_unsuccessful_body_is_server_error() -> None:
    body = {"success": False, "message": "Unsupported audio format"}
    outcome = _client(lambda r: httpx.Response(200, json=body)).send(_request())

    assert outcome.kind == FailureKind.SERVER_ERROR
    assert outcome.status_code == 200
    assert outcome.message == "Unsupported audio format"


def test_non_json_body_is_malformed() -> None:
    outcome = _client(lambda r: httpx.Response(200, text="not json")).send(_request())
    assert outcome.kind == FailureKind.MALFORMED_RESPONSE


def test_body_without_success_flag_is_malformed() -> None:
    body = {"result": {"text": "hi"}}
    outcome = _client(lambda r: httpx.Response(200, json=body)).send(_request())

    assert outcome.kind == FailureKind.MALFORMED_RESPONSE
    assert outcome.status_code is None


def test_missing_result_text_is_malformed() -> None:
    body = {"success": True, "result": {"language": "en"}}
    outcome = _client(lambda r: httpx.Response(200, json=body)).send(_request())
    assert outcome.kind == FailureKind.MALFORMED_RESPONSE


def test_parse_result_rejects_bad_confidence() -> None:
    with pytest.raises(ValueError):
        parse_result({"text": "x", "confidence": "high"})


# ---------------------------------------------------------------
# Transport failures
# ---------------------------------------------------------------

def test_connect_and_receive_timeouts_have_distinct_messages() -> None:
    connect = _client(_raise(httpx.ConnectTimeout)).send(_request())
    receive = _client(_raise(httpx.ReadTimeout)).send(_request())

    assert connect.kind == FailureKind.TIMEOUT
    assert receive.kind == FailureKind.TIMEOUT
    assert connect.message == CONNECT_TIMEOUT_MESSAGE
    assert receive.message == RECEIVE_TIMEOUT_MESSAGE
    assert connect.message != receive.message
    assert "server is running" in connect.message
    assert "too large" in receive.message


def test_write_timeout_is_timeout() -> None:
    outcome = _client(_raise(httpx.WriteTimeout)).send(_request())
    assert outcome.kind == FailureKind.TIMEOUT


def test_connect_error_is_connection_refused() -> None:
    outcome = _client(_raise(httpx.ConnectError)).send(_request())
    assert outcome.kind == FailureKind.CONNECTION_REFUSED


def test_other_exception_is_unknown() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("weird")

    outcome = _client(handler).send(_request())
    assert outcome.kind == FailureKind.UNKNOWN
    assert "weird" in outcome.message


def test_send_never_retries() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        raise httpx.ConnectError("refused", request=request)

    _client(handler).send(_request())
    assert calls == [1]


# ---------------------------------------------------------------
# Probes
# ---------------------------------------------------------------

def test_check_health() -> None:
    assert _client(lambda r: httpx.Response(200, json={"status": "ok"})).check_health() is True
    assert _client(lambda r: httpx.Response(500)).check_health() is False
    assert _client(_raise(httpx.ConnectError)).check_health() is False


def test_list_languages_and_models_passthrough() -> None:
    payloads = {
        "/languages": {"auto": "Auto-detect", "en": "English"},
        "/models": {"base": {"name": "Base", "size": "74 MB", "accuracy": "good"}},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=json.dumps(payloads[request.url.path]))

    client = _client(handler)
    assert client.list_languages() == payloads["/languages"]
    assert client.list_models() == payloads["/models"]


def test_list_calls_return_none_on_failure() -> None:
    assert _client(lambda r: httpx.Response(404)).list_languages() is None
    assert _client(_raise(httpx.ConnectError)).list_models() is None
    assert _client(lambda r: httpx.Response(200, text="nope")).list_models() is None
