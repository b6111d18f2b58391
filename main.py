"""Application entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from typing import Optional, Sequence

from clipboard import ClipboardService
from config import JsonConfigStore
from hotkey import GlobalHotkeyAdapter
from interfaces import ConfigStore
from logging_setup import setup_app_logger
from models import AmplitudeSample, HistoryEntry, ModelSize, SessionState
from orchestrator import TranscriptionOrchestrator
from recorder import SoundDevicePermissionProvider, SoundDeviceRecorder
from recording_session import RecordingSession
from transcription_client import TranscriptionClient

logger = logging.getLogger(__name__)

QUIT_JOIN_TIMEOUT_S = 5.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voice-transcriber",
        description="Record short voice clips and transcribe them on a Whisper server.",
    )
    parser.add_argument("--base-url", help="Transcription server URL (saved to config).")
    parser.add_argument("--language", help='Language hint, "auto" or an ISO code.')
    parser.add_argument(
        "--model",
        choices=[m.value for m in ModelSize],
        help="Whisper model size used by the server.",
    )
    parser.add_argument("--health", action="store_true", help="Check the server and exit.")
    parser.add_argument("--languages", action="store_true", help="Print supported languages and exit.")
    parser.add_argument("--models", action="store_true", help="Print available models and exit.")
    parser.add_argument("--copy", action="store_true", help="Copy each transcript to the clipboard.")
    parser.add_argument("--verbose", action="store_true", help="Also log to stderr.")
    return parser


class App:
    def __init__(self, args: argparse.Namespace, config_store: Optional[ConfigStore] = None) -> None:
        self.args = args
        self.config_store = config_store or JsonConfigStore()
        if args.base_url:
            self.config_store.set_base_url(args.base_url)
        if args.language:
            self.config_store.set_language(args.language)
        if args.model:
            self.config_store.set_model_size(args.model)

        self.client = TranscriptionClient(base_url=self.config_store.get_base_url())
        self.clipboard = ClipboardService()
        self.orchestrator = TranscriptionOrchestrator(
            session=RecordingSession(SoundDeviceRecorder(), SoundDevicePermissionProvider()),
            client=self.client,
            language=self.config_store.get_language(),
            model_size=self.config_store.get_model_size(),
            on_state_change=self._on_state_change,
            on_error=self._on_error,
            on_tick=self._on_tick,
            on_result=self._on_result,
            on_amplitude=self._on_amplitude,
        )
        self.hotkey = GlobalHotkeyAdapter(
            hotkey_name=self.config_store.get_hotkey(),
            cancel_hotkey_name=self.config_store.get_cancel_hotkey(),
        )
        self._stopped = threading.Event()
        self._worker: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # One-shot commands
    # ------------------------------------------------------------------

    def run_probe(self) -> int:
        if self.args.health:
            ok = self.client.check_health()
            print(f"{self.client.base_url}: {'healthy' if ok else 'unavailable'}")
            return 0 if ok else 1
        payload = self.client.list_languages() if self.args.languages else self.client.list_models()
        if payload is None:
            print("Request failed, see log for details.", file=sys.stderr)
            return 1
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        if to_state == SessionState.RECORDING:
            print("Recording... press the hotkey again to stop, Esc to cancel.")
        elif to_state == SessionState.TRANSCRIBING:
            print("Transcribing...")
        elif to_state == SessionState.IDLE and from_state == SessionState.RECORDING:
            print("Cancelled.")

    def _on_error(self, code: str, message: str) -> None:
        print(f"{code}: {message}", file=sys.stderr)

    def _on_tick(self, text: str) -> None:
        print(f"\r{text}", end="", flush=True)

    def _on_amplitude(self, sample: AmplitudeSample) -> None:
        logger.debug("level %.1f dB", sample.current_db)

    def _on_result(self, entry: HistoryEntry) -> None:
        duration = f" ({entry.audio_duration_s:.1f}s)" if entry.audio_duration_s else ""
        print(f"\n[{entry.result.detected_language or '?'}]{duration} {entry.text}")
        if self.args.copy:
            result = self.clipboard.copy_text(entry.text)
            if not result.success:
                print(f"Clipboard: {result.reason}", file=sys.stderr)

    # ------------------------------------------------------------------
    # Hotkey handlers
    # ------------------------------------------------------------------

    def _on_hotkey_toggle(self) -> None:
        # toggle() blocks for the upload; keep the listener thread free
        worker = threading.Thread(target=self.orchestrator.toggle, daemon=True)
        self._worker = worker
        worker.start()

    def _on_hotkey_cancel(self) -> None:
        self.orchestrator.cancel()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        if not self.orchestrator.check_server():
            print("Server not available. Start the Python backend first.", file=sys.stderr)
        try:
            self.hotkey.start(on_toggle=self._on_hotkey_toggle, on_cancel=self._on_hotkey_cancel)
        except RuntimeError as exc:
            print(f"Hotkey disabled: {exc}", file=sys.stderr)
            return 1
        print(f"Press {self.config_store.get_hotkey()} to start/stop recording. Ctrl+C quits.")
        try:
            self._stopped.wait()
        except KeyboardInterrupt:
            pass
        finally:
            self.quit()
        return 0

    def quit(self) -> None:
        self._stopped.set()
        self.hotkey.stop()
        self.orchestrator.cancel()
        # an upload in flight still owns its temp file until it finishes
        worker = self._worker
        if worker is not None and worker.is_alive():
            worker.join(timeout=QUIT_JOIN_TIMEOUT_S)
            if worker.is_alive():
                logger.warning("transcription still running at exit")
        self.client.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _, log_path = setup_app_logger(level=logging.DEBUG if args.verbose else logging.INFO, console=args.verbose)
    logger.info("starting", extra={"log_path": str(log_path)})
    app = App(args)
    if args.health or args.languages or args.models:
        try:
            return app.run_probe()
        finally:
            app.client.close()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
