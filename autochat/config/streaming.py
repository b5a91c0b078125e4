"""Reassembly and autosend settings (env-resolved constants only)."""

from __future__ import annotations

import os

BATCH_MODE_LAST = "last"
BATCH_MODE_RESYNC = "resync"
_BATCH_MODES = frozenset({BATCH_MODE_LAST, BATCH_MODE_RESYNC})


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except Exception:
        return float(default)


def _get_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except Exception:
        return int(default)


# Quiet period after the last snapshot for a message id before it is finalized.
STREAM_SILENCE_WINDOW_S: float = max(0.0, _get_float("AUTOCHAT_SILENCE_WINDOW_S", 3.5))

# Delay between automatic prompt dispatches (waiting for the reply plus a pause).
AUTOSEND_MIN_CADENCE_MS: int = 50
AUTOSEND_CADENCE_MS: int = max(AUTOSEND_MIN_CADENCE_MS, _get_int("AUTOCHAT_CADENCE_MS", 8000))

_BATCH_MODE_RAW = (os.getenv("AUTOCHAT_BATCH_MODE") or "").strip().lower()
STREAM_BATCH_MODE: str = _BATCH_MODE_RAW if _BATCH_MODE_RAW in _BATCH_MODES else BATCH_MODE_LAST

__all__ = [
    "AUTOSEND_CADENCE_MS",
    "AUTOSEND_MIN_CADENCE_MS",
    "BATCH_MODE_LAST",
    "BATCH_MODE_RESYNC",
    "STREAM_BATCH_MODE",
    "STREAM_SILENCE_WINDOW_S",
]
