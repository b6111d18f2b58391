"""Lifecycle of a single capture attempt."""

from __future__ import annotations

import logging
import tempfile
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from errors import ALREADY_ACTIVE, DEVICE_ERROR, ERROR_MESSAGES, PERMISSION_DENIED
from interfaces import AmplitudeCallback, PermissionProvider, Recorder
from models import CaptureResult, RecordingHandle

logger = logging.getLogger(__name__)


class RecordingSession:
    def __init__(
        self,
        recorder: Recorder,
        permissions: PermissionProvider,
        scratch_dir: Optional[Path] = None,
    ) -> None:
        self._recorder = recorder
        self._permissions = permissions
        self._scratch_dir = Path(scratch_dir) if scratch_dir else Path(tempfile.gettempdir())
        self._lock = threading.RLock()
        self._handle: Optional[RecordingHandle] = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def current_path(self) -> Optional[Path]:
        return self._handle.path if self._handle else None

    def amplitude_supported(self) -> bool:
        try:
            return self._permissions.status() and self._recorder.amplitude_supported()
        except Exception:
            return False

    def start(self, on_amplitude: Optional[AmplitudeCallback] = None) -> CaptureResult:
        with self._lock:
            if not self._ensure_permission():
                return CaptureResult(
                    success=False,
                    code=PERMISSION_DENIED,
                    message=ERROR_MESSAGES[PERMISSION_DENIED],
                )

            if self._active:
                logger.info("discarding previous capture before restarting")
                self.cancel()

            if self._recorder.is_recording:
                return CaptureResult(
                    success=False,
                    code=ALREADY_ACTIVE,
                    message=ERROR_MESSAGES[ALREADY_ACTIVE],
                )

            path = self._scratch_dir / f"recording_{uuid.uuid4().hex}.wav"
            handle = RecordingHandle(path=path, started_at=datetime.now())
            try:
                self._recorder.start(path, on_amplitude)
            except Exception as exc:
                logger.warning("recorder failed to start: %s", exc)
                self._delete_quietly(path)
                return CaptureResult(
                    success=False,
                    code=DEVICE_ERROR,
                    message=f"{ERROR_MESSAGES[DEVICE_ERROR]} {exc}",
                )

            self._handle = handle
            self._active = True
            logger.info("recording started", extra={"path": str(path)})
            return CaptureResult(success=True, handle=handle)

    def stop(self) -> Optional[RecordingHandle]:
        with self._lock:
            if not self._active:
                return None
            handle = self._handle
            self._active = False
            try:
                self._recorder.stop()
            except Exception as exc:
                logger.warning("recorder failed to stop cleanly: %s", exc)

            if handle is None or not handle.path.exists():
                logger.warning("recording produced no file")
                self._handle = None
                return None
            return handle

    def cancel(self) -> None:
        with self._lock:
            if self._active:
                self._active = False
                try:
                    self._recorder.stop()
                except Exception as exc:
                    logger.warning("recorder failed to stop on cancel: %s", exc)
            if self._handle is not None:
                self._delete_quietly(self._handle.path)
                self._handle = None

    def discard(self, handle: RecordingHandle) -> None:
        """Delete the file behind a handle that has been consumed."""
        with self._lock:
            self._delete_quietly(handle.path)
            if self._handle == handle:
                self._handle = None

    def _ensure_permission(self) -> bool:
        try:
            if self._permissions.status():
                return True
            return self._permissions.request()
        except Exception as exc:
            logger.warning("permission check failed: %s", exc)
            return False

    @staticmethod
    def _delete_quietly(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("failed to delete temp file %s: %s", path, exc)
