"""Logging initialization."""

from __future__ import annotations

import logging
from pathlib import Path

from autochat.config.logging import LOG_FILE, LOG_LEVEL, LOG_FORMAT, SHOW_WS_LOGS


def configure_logging(*, level: str | None = None, log_file: str | None = None) -> None:
    # websockets logs every frame at DEBUG. Keep it tame unless explicitly enabled.
    if not SHOW_WS_LOGS:
        logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)

    path = LOG_FILE if log_file is None else log_file
    if not path:
        return
    target = Path(path).expanduser()
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == target.resolve():
            return
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target, encoding="utf-8")
    except OSError:
        logging.getLogger(__name__).warning("cannot open log file %s", target, exc_info=True)
        return
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)


__all__ = ["configure_logging"]
