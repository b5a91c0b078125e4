"""Configuration module exports (env-resolved constants only)."""

from .websocket import WS_BASE_URL
from .streaming import AUTOSEND_CADENCE_MS, STREAM_SILENCE_WINDOW_S

__all__ = [
    "AUTOSEND_CADENCE_MS",
    "STREAM_SILENCE_WINDOW_S",
    "WS_BASE_URL",
]
