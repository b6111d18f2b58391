"""State-machine based recording/transcription orchestration."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Callable, Optional, Union

from errors import ERROR_MESSAGES, FILE_MISSING, SERVER_UNAVAILABLE, UNKNOWN
from interfaces import Ticker, TickerFactory, Transcriber
from models import (
    AmplitudeSample,
    HistoryEntry,
    ModelSize,
    RecordingHandle,
    SessionState,
    TranscriptionRequest,
    TranscriptionResult,
)
from recording_session import RecordingSession
from ticker import RepeatingTicker
from wav_inspector import compute_duration, format_duration

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20
TICK_INTERVAL_S = 1.0

StateCallback = Callable[[SessionState, SessionState], None]
ErrorCallback = Callable[[str, str], None]
TickCallback = Callable[[str], None]
ResultCallback = Callable[[HistoryEntry], None]
AmplitudeListener = Callable[[AmplitudeSample], None]


def _coerce_model_size(value: Union[ModelSize, str]) -> ModelSize:
    try:
        return ModelSize(value)
    except ValueError:
        logger.warning("unknown model size %r, using %s", value, ModelSize.BASE.value)
        return ModelSize.BASE


class TranscriptionOrchestrator:
    def __init__(
        self,
        session: RecordingSession,
        client: Transcriber,
        language: str = "auto",
        model_size: Union[ModelSize, str] = ModelSize.BASE,
        history_limit: int = HISTORY_LIMIT,
        ticker_factory: TickerFactory = RepeatingTicker,
        on_state_change: Optional[StateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_tick: Optional[TickCallback] = None,
        on_result: Optional[ResultCallback] = None,
        on_amplitude: Optional[AmplitudeListener] = None,
    ) -> None:
        self._session = session
        self._client = client
        self._language = language
        self._model_size = _coerce_model_size(model_size)
        self._ticker_factory = ticker_factory
        self._on_state_change = on_state_change
        self._on_error = on_error
        self._on_tick = on_tick
        self._on_result = on_result
        self._on_amplitude = on_amplitude

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._ticker: Optional[Ticker] = None
        self._elapsed_s = 0
        self._history: deque[HistoryEntry] = deque(maxlen=history_limit)
        self._last_result: Optional[TranscriptionResult] = None
        self._server_available: Optional[bool] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def history(self) -> list[HistoryEntry]:
        with self._lock:
            return list(self._history)

    @property
    def last_result(self) -> Optional[TranscriptionResult]:
        return self._last_result

    @property
    def elapsed_s(self) -> int:
        return self._elapsed_s

    @property
    def duration_text(self) -> str:
        return format_duration(self._elapsed_s)

    @property
    def language(self) -> str:
        return self._language

    @property
    def model_size(self) -> ModelSize:
        return self._model_size

    @property
    def server_available(self) -> Optional[bool]:
        return self._server_available

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def select_language(self, language: str) -> None:
        self._language = language.strip() or "auto"

    def select_model(self, model_size: Union[ModelSize, str]) -> None:
        self._model_size = ModelSize(model_size)

    def check_server(self) -> bool:
        available = self._client.check_health()
        self._server_available = available
        if not available:
            logger.warning("transcription server not available")
        return available

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def toggle(self) -> None:
        with self._lock:
            if self._state == SessionState.IDLE:
                self._start_recording()
                return
            if self._state != SessionState.RECORDING:
                logger.debug("toggle ignored in state %s", self._state.value)
                return
            ticker = self._take_ticker()
            self._transition(SessionState.STOPPING)

        if ticker is not None:
            ticker.cancel()
        self._stop_and_transcribe()

    def cancel(self) -> None:
        with self._lock:
            if self._state != SessionState.RECORDING:
                return
            ticker = self._take_ticker()
            self._session.cancel()
            self._transition(SessionState.IDLE)
            logger.info("recording cancelled")
        if ticker is not None:
            ticker.cancel()

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
            self._last_result = None

    def remove_history_entry(self, index: int) -> HistoryEntry:
        with self._lock:
            entry = self._history[index]
            del self._history[index]
            if not self._history:
                self._last_result = None
            elif index == 0:
                self._last_result = self._history[0].result
            return entry

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _start_recording(self) -> None:
        # a failed check is retried so a backend started later unblocks recording
        if self._server_available is False and not self.check_server():
            self._emit_error(SERVER_UNAVAILABLE, ERROR_MESSAGES[SERVER_UNAVAILABLE])
            return

        result = self._session.start(self._handle_amplitude)
        if not result.success:
            self._emit_error(result.code, result.message)
            return

        self._elapsed_s = 0
        self._transition(SessionState.RECORDING)
        self._ticker = self._ticker_factory(TICK_INTERVAL_S, self._handle_tick)
        self._ticker.start()

    def _stop_and_transcribe(self) -> None:
        with self._lock:
            handle = self._session.stop()
            if handle is None:
                self._transition(SessionState.IDLE)
                self._emit_error(FILE_MISSING, ERROR_MESSAGES[FILE_MISSING])
                return
            try:
                audio = handle.path.read_bytes()
            except OSError as exc:
                self._finish(handle)
                self._emit_error(FILE_MISSING, f"{ERROR_MESSAGES[FILE_MISSING]} {exc}")
                return
            request = TranscriptionRequest(
                audio_bytes=audio,
                language=self._language,
                model_size=self._model_size,
            )
            duration_s = compute_duration(audio)
            self._transition(SessionState.TRANSCRIBING)

        # the lock is released so a concurrent toggle() sees TRANSCRIBING
        try:
            outcome = self._client.send(request)
        except Exception as exc:  # pragma: no cover - Transcriber.send must not raise
            logger.exception("transcriber raised")
            with self._lock:
                self._finish(handle)
                self._emit_error(UNKNOWN, f"Unexpected error: {exc}")
            return

        with self._lock:
            if not outcome.ok:
                self._finish(handle)
                self._emit_error(outcome.kind.value, outcome.message)
                return
            entry = HistoryEntry(
                result=outcome.result,
                created_at=datetime.now(),
                audio_duration_s=duration_s,
            )
            self._history.appendleft(entry)
            self._last_result = outcome.result
            logger.info("transcription completed", extra={"history_size": len(self._history)})
            # a raising callback still ends in IDLE with the file removed
            try:
                if self._on_result:
                    self._on_result(entry)
            finally:
                self._finish(handle)

    def _finish(self, handle: RecordingHandle) -> None:
        self._session.discard(handle)
        self._transition(SessionState.IDLE)

    def _take_ticker(self) -> Optional[Ticker]:
        ticker, self._ticker = self._ticker, None
        return ticker

    def _handle_tick(self) -> None:
        with self._lock:
            if self._state != SessionState.RECORDING:
                return
            self._elapsed_s += 1
            if self._on_tick:
                self._on_tick(self.duration_text)

    def _handle_amplitude(self, sample: AmplitudeSample) -> None:
        if self._on_amplitude and self._state == SessionState.RECORDING:
            self._on_amplitude(sample)

    def _emit_error(self, code: str, message: str) -> None:
        logger.warning("%s: %s", code, message)
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("state %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
