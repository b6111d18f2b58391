from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from config import JsonConfigStore
from main import App, build_parser
from models import ModelSize


def test_parser_accepts_model_sizes() -> None:
    args = build_parser().parse_args(["--model", "small", "--language", "en", "--health"])
    assert args.model == "small"
    assert args.language == "en"
    assert args.health is True


def test_parser_rejects_unknown_model() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--model", "huge"])


def test_cli_options_are_saved_and_applied(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    args = build_parser().parse_args(["--base-url", "http://h:1", "--language", "fr", "--model", "tiny"])

    app = App(args, config_store=store)
    try:
        assert store.get_base_url() == "http://h:1"
        assert app.client.base_url == "http://h:1"
        assert app.orchestrator.language == "fr"
        assert app.orchestrator.model_size == ModelSize.TINY
    finally:
        app.client.close()


def test_health_command_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    app = App(build_parser().parse_args(["--health"]), config_store=store)
    app.client = MagicMock()
    app.client.base_url = "http://localhost:8000"

    app.client.check_health.return_value = True
    assert app.run_probe() == 0
    app.client.check_health.return_value = False
    assert app.run_probe() == 1
    assert "unavailable" in capsys.readouterr().out


def test_models_command_prints_payload(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    app = App(build_parser().parse_args(["--models"]), config_store=store)
    app.client = MagicMock()
    app.client.list_models.return_value = {"base": {"name": "Base"}}

    assert app.run_probe() == 0
    assert '"base"' in capsys.readouterr().out

    app.client.list_models.return_value = None
    assert app.run_probe() == 1


def test_quit_waits_for_running_transcription(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    app = App(build_parser().parse_args([]), config_store=store)
    app.client.close()
    app.client = MagicMock()
    app.hotkey = MagicMock()
    app.orchestrator = MagicMock()
    started = threading.Event()
    finished = threading.Event()

    def slow_toggle() -> None:
        started.set()
        threading.Event().wait(0.2)
        finished.set()

    app.orchestrator.toggle.side_effect = slow_toggle
    app._on_hotkey_toggle()
    assert started.wait(timeout=2.0)

    app.quit()

    assert finished.is_set()
    app.orchestrator.cancel.assert_called_once()
    app.client.close.assert_called_once()
