"""Logging configuration."""

from __future__ import annotations

import os

LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILE: str = (os.getenv("LOG_FILE") or "").strip()
SHOW_WS_LOGS: bool = (os.getenv("SHOW_WS_LOGS") or "").strip().lower() in {"1", "true", "yes"}

__all__ = ["LOG_FILE", "LOG_FORMAT", "LOG_LEVEL", "SHOW_WS_LOGS"]
