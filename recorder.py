"""Microphone recorder adapter writing 16-bit PCM WAV files."""

from __future__ import annotations

import logging
import threading
import wave
from pathlib import Path
from typing import Any, Optional

from interfaces import AmplitudeCallback
from models import AmplitudeSample

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)

SILENCE_DB = -160.0


def pcm16_level_db(pcm: bytes) -> float:
    """RMS level of a block of int16 samples in dBFS."""
    if np is None or not pcm:
        return SILENCE_DB
    samples = np.frombuffer(pcm, dtype=np.int16).astype(np.float64)
    if samples.size == 0:
        return SILENCE_DB
    rms = float(np.sqrt(np.mean(samples * samples)))
    if rms <= 0.0:
        return SILENCE_DB
    return max(SILENCE_DB, 20.0 * float(np.log10(rms / 32768.0)))


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._stream: Any = None
        self._wav: Optional[wave.Wave_write] = None
        self._path: Optional[Path] = None
        self._running = False
        self._lock = threading.Lock()
        self._on_amplitude: Optional[AmplitudeCallback] = None
        self._max_db = SILENCE_DB

    @property
    def is_recording(self) -> bool:
        return self._running

    def amplitude_supported(self) -> bool:
        return sd is not None and np is not None

    def start(self, path: Path, on_amplitude: Optional[AmplitudeCallback] = None) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            path = Path(path)
            wav = wave.open(str(path), "wb")
            wav.setnchannels(self.channels)
            wav.setsampwidth(2)
            wav.setframerate(self.sample_rate)
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            try:
                self._stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    dtype="int16",
                    blocksize=blocksize,
                    callback=self._on_audio,
                )
                self._stream.start()
            except Exception:
                wav.close()
                self._stream = None
                raise
            self._wav = wav
            self._path = path
            self._on_amplitude = on_amplitude
            self._max_db = SILENCE_DB
            self._running = True
            logger.debug("capture started: %s", path)

    def stop(self) -> Optional[Path]:
        with self._lock:
            if not self._running:
                return None
            self._running = False
            stream, self._stream = self._stream, None
        # stream.stop() waits for a running callback, which needs the lock
        try:
            if stream is not None:
                stream.stop()
                stream.close()
        finally:
            with self._lock:
                if self._wav is not None:
                    self._wav.close()
                    self._wav = None
                self._on_amplitude = None
                path, self._path = self._path, None
        logger.debug("capture stopped: %s", path)
        return path

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug("input stream status: %s", status)
        with self._lock:
            if not self._running or self._wav is None:
                return
            payload = bytes(indata) if np is None else np.asarray(indata, dtype=np.int16).tobytes()
            self._wav.writeframes(payload)
            callback = self._on_amplitude
        if callback is None:
            return
        level = pcm16_level_db(payload)
        self._max_db = max(self._max_db, level)
        callback(AmplitudeSample(current_db=level, max_db=self._max_db))


class SoundDevicePermissionProvider:
    """Desktop stand-in for a microphone permission prompt.

    The OS asks the user on first access, so "granted" here means an input
    device can be queried.
    """

    def status(self) -> bool:
        if sd is None:
            return False
        try:
            sd.query_devices(kind="input")
        except Exception as exc:
            logger.info("no usable input device: %s", exc)
            return False
        return True

    def request(self) -> bool:
        if sd is None:
            return False
        try:
            sd.check_input_settings(samplerate=16000, channels=1, dtype="int16")
        except Exception as exc:
            logger.warning("microphone access refused: %s", exc)
            return False
        return True
