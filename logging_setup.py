"""JSON-lines application logging."""

from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config import default_config_dir

_RESERVED_FIELDS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

FILE_HANDLER_NAME = "voice_transcriber.file"
CONSOLE_HANDLER_NAME = "voice_transcriber.console"


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_FIELDS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def remove_app_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if handler.get_name() in (FILE_HANDLER_NAME, CONSOLE_HANDLER_NAME):
            logger.removeHandler(handler)
            handler.close()


def setup_app_logger(
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: bool = False,
) -> tuple[logging.Logger, Path]:
    """Route all loggers to a rotating JSON-lines file under ``log_dir``.

    Modules log through ``logging.getLogger(__name__)``, so the handlers are
    attached to the root logger.
    """
    log_dir = log_dir or default_config_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "voice_transcriber.log"

    logger = logging.getLogger()
    logger.setLevel(level)
    remove_app_handlers(logger)

    file_handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=1_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.set_name(FILE_HANDLER_NAME)
    file_handler.setFormatter(JsonLineFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    logger.addHandler(file_handler)

    if console:
        stream = logging.StreamHandler(sys.stderr)
        stream.set_name(CONSOLE_HANDLER_NAME)
        stream.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(stream)

    # keep request-level chatter out of the app log
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return logger, log_path
