"""Simple JSON-based config store."""

from __future__ import annotations

import json
import os
from pathlib import Path

from transcription_client import DEFAULT_BASE_URL

BASE_URL_ENV = "VOICE_TRANSCRIBER_URL"


def default_config_dir() -> Path:
    return Path.home() / ".config" / "voice_transcriber"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_config_dir() / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def get_base_url(self) -> str:
        data = self._read_all()
        value = str(data.get("base_url", ""))
        return value or os.getenv(BASE_URL_ENV, "") or DEFAULT_BASE_URL

    def set_base_url(self, url: str) -> None:
        self._set("base_url", url.rstrip("/"))

    def get_language(self) -> str:
        data = self._read_all()
        return str(data.get("language", "auto"))

    def set_language(self, language: str) -> None:
        self._set("language", language)

    def get_model_size(self) -> str:
        data = self._read_all()
        return str(data.get("model_size", "base"))

    def set_model_size(self, model_size: str) -> None:
        self._set("model_size", model_size)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", "Key.f9"))

    def set_hotkey(self, hotkey: str) -> None:
        self._set("hotkey", hotkey)

    def get_cancel_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("cancel_hotkey", "Key.esc"))

    def set_cancel_hotkey(self, hotkey: str) -> None:
        self._set("cancel_hotkey", hotkey)

    def _set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
