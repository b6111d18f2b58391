"""HTTP client for the Whisper transcription backend.

Uses a synchronous ``httpx.Client``; callers that must not block run
``send`` on a worker thread.  ``send`` never raises: every transport
failure is folded into a :class:`TranscriptionFailure` with a fixed kind.
No request is ever retried here, a failed upload is reported and the user
decides whether to record again.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from errors import (
    CONNECTION_REFUSED,
    CONNECT_TIMEOUT_MESSAGE,
    ERROR_MESSAGES,
    RECEIVE_TIMEOUT_MESSAGE,
    SEND_TIMEOUT_MESSAGE,
    SERVER_ERROR,
    TIMEOUT,
)
from models import (
    FailureKind,
    TranscriptionFailure,
    TranscriptionOutcome,
    TranscriptionRequest,
    TranscriptionResult,
    TranscriptionSuccess,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"

DEFAULT_TIMEOUT = httpx.Timeout(connect=30.0, write=60.0, read=120.0, pool=30.0)


class MalformedResponseError(ValueError):
    pass


def parse_result(payload: Any) -> TranscriptionResult:
    """Build a result from the ``result`` object of a transcribe response."""
    if not isinstance(payload, dict):
        raise MalformedResponseError("result is not an object")
    text = payload.get("text")
    if not isinstance(text, str):
        raise MalformedResponseError("result has no text")

    language = payload.get("detected_language", payload.get("language", ""))
    confidence = payload.get("confidence")
    processing_time = payload.get("processing_time")
    timings = payload.get("timings")
    segments = payload.get("segments")
    try:
        return TranscriptionResult(
            text=text.strip(),
            detected_language=str(language or ""),
            confidence=float(confidence) if confidence is not None else None,
            processing_time_s=float(processing_time) if processing_time is not None else None,
            timings=dict(timings) if isinstance(timings, dict) else {},
            segments=list(segments) if isinstance(segments, list) else [],
        )
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(str(exc)) from exc


class TranscriptionClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "TranscriptionClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transcription
    # ------------------------------------------------------------------

    def send(self, request: TranscriptionRequest) -> TranscriptionOutcome:
        files = {"audio_file": ("audio.wav", request.audio_bytes, "audio/wav")}
        data = {"language": request.language, "model_size": request.model_size.value}
        logger.info(
            "uploading recording",
            extra={"bytes": len(request.audio_bytes), "language": request.language,
                   "model_size": request.model_size.value},
        )
        try:
            response = self._client.post("/transcribe", files=files, data=data)
        except httpx.ConnectTimeout:
            return self._failure(FailureKind.TIMEOUT, CONNECT_TIMEOUT_MESSAGE)
        except httpx.ReadTimeout:
            return self._failure(FailureKind.TIMEOUT, RECEIVE_TIMEOUT_MESSAGE)
        except httpx.WriteTimeout:
            return self._failure(FailureKind.TIMEOUT, SEND_TIMEOUT_MESSAGE)
        except httpx.TimeoutException as exc:
            return self._failure(FailureKind.TIMEOUT, f"{ERROR_MESSAGES[TIMEOUT]} {exc}")
        except httpx.ConnectError:
            return self._failure(FailureKind.CONNECTION_REFUSED, ERROR_MESSAGES[CONNECTION_REFUSED])
        except Exception as exc:
            return self._failure(FailureKind.UNKNOWN, f"Unexpected error: {exc}")

        return self._to_outcome(response)

    def _to_outcome(self, response: httpx.Response) -> TranscriptionOutcome:
        if response.status_code != 200:
            return self._failure(
                FailureKind.SERVER_ERROR,
                self._error_message(response),
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError:
            return self._failure(FailureKind.MALFORMED_RESPONSE, "Response body is not JSON")
        if not isinstance(body, dict):
            return self._failure(FailureKind.MALFORMED_RESPONSE, "Response body is not an object")
        if "success" not in body:
            return self._failure(FailureKind.MALFORMED_RESPONSE, "Response body has no success flag")

        if not body["success"]:
            message = body.get("message") or body.get("error") or ERROR_MESSAGES[SERVER_ERROR]
            return self._failure(FailureKind.SERVER_ERROR, str(message), status_code=200)

        try:
            result = parse_result(body.get("result"))
        except MalformedResponseError as exc:
            return self._failure(FailureKind.MALFORMED_RESPONSE, f"Invalid result: {exc}")
        logger.info("transcription received", extra={"chars": len(result.text)})
        return TranscriptionSuccess(result=result)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("message") or body.get("detail")
            if detail:
                return str(detail)
        return f"HTTP {response.status_code}: {response.reason_phrase}"

    @staticmethod
    def _failure(
        kind: FailureKind, message: str, status_code: Optional[int] = None
    ) -> TranscriptionFailure:
        logger.warning("transcription failed: %s", message, extra={"kind": kind.value})
        return TranscriptionFailure(kind=kind, message=message, status_code=status_code)

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def check_health(self) -> bool:
        try:
            response = self._client.get("/health")
        except Exception as exc:
            logger.info("server health check failed: %s", exc)
            return False
        return response.status_code == 200

    def list_languages(self) -> Optional[dict[str, Any]]:
        return self._get_json("/languages")

    def list_models(self) -> Optional[dict[str, Any]]:
        return self._get_json("/models")

    def _get_json(self, path: str) -> Optional[dict[str, Any]]:
        try:
            response = self._client.get(path)
            response.raise_for_status()
            data = response.json()
        except Exception as exc:
            logger.info("GET %s failed: %s", path, exc)
            return None
        return data if isinstance(data, dict) else None
