"""Protocol interfaces used by RecordingSession and TranscriptionOrchestrator."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from models import AmplitudeSample, TranscriptionOutcome, TranscriptionRequest

AmplitudeCallback = Callable[[AmplitudeSample], None]


class Recorder(Protocol):
    @property
    def is_recording(self) -> bool: ...

    def start(self, path: Path, on_amplitude: Optional[AmplitudeCallback] = None) -> None: ...

    def stop(self) -> Optional[Path]: ...

    def amplitude_supported(self) -> bool: ...


class PermissionProvider(Protocol):
    def status(self) -> bool: ...

    def request(self) -> bool: ...


class Transcriber(Protocol):
    def send(self, request: TranscriptionRequest) -> TranscriptionOutcome: ...

    def check_health(self) -> bool: ...

    def list_languages(self) -> Optional[dict[str, Any]]: ...

    def list_models(self) -> Optional[dict[str, Any]]: ...


class Ticker(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TickerFactory = Callable[[float, Callable[[], None]], Ticker]


class ConfigStore(Protocol):
    def get_base_url(self) -> str: ...

    def set_base_url(self, url: str) -> None: ...

    def get_language(self) -> str: ...

    def set_language(self, language: str) -> None: ...

    def get_model_size(self) -> str: ...

    def set_model_size(self, model_size: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_cancel_hotkey(self) -> str: ...
