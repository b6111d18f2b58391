"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union


class SessionState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    STOPPING = "STOPPING"
    TRANSCRIBING = "TRANSCRIBING"


class ModelSize(str, Enum):
    TINY = "tiny"
    BASE = "base"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class FailureKind(str, Enum):
    TIMEOUT = "TIMEOUT"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    SERVER_ERROR = "SERVER_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class RecordingHandle:
    path: Path
    started_at: datetime


@dataclass(frozen=True)
class AudioHeader:
    audio_format: int
    num_channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_byte_length: int

    @property
    def bytes_per_sample(self) -> int:
        return self.bits_per_sample // 8


@dataclass(frozen=True)
class AmplitudeSample:
    current_db: float
    max_db: float


@dataclass
class CaptureResult:
    success: bool
    handle: Optional[RecordingHandle] = None
    code: str = ""
    message: str = ""


@dataclass(frozen=True)
class TranscriptionRequest:
    audio_bytes: bytes
    language: str = "auto"
    model_size: ModelSize = ModelSize.BASE


@dataclass
class TranscriptionResult:
    text: str
    detected_language: str = ""
    confidence: Optional[float] = None
    processing_time_s: Optional[float] = None
    timings: dict[str, Any] = field(default_factory=dict)
    segments: list[Any] = field(default_factory=list)


@dataclass
class TranscriptionSuccess:
    result: TranscriptionResult

    @property
    def ok(self) -> bool:
        return True


@dataclass
class TranscriptionFailure:
    kind: FailureKind
    message: str
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False


TranscriptionOutcome = Union[TranscriptionSuccess, TranscriptionFailure]


@dataclass
class HistoryEntry:
    result: TranscriptionResult
    created_at: datetime
    audio_duration_s: Optional[float] = None

    @property
    def text(self) -> str:
        return self.result.text


@dataclass
class CopyResult:
    success: bool
    reason: str
