"""Load runtime settings.

Configuration values are resolved from the environment in `autochat/config/*`
and exposed here as structured dataclasses for the rest of the client.
"""

from __future__ import annotations

from pathlib import Path

from autochat.config.files import AUTOCHAT_HOME
from autochat.config.websocket import (
    WS_BASE_URL,
    WS_OPEN_TIMEOUT_S,
    WS_PING_TIMEOUT_S,
    WS_PING_INTERVAL_S,
    WS_MAX_MESSAGE_BYTES,
)
from autochat.config.streaming import (
    STREAM_BATCH_MODE,
    AUTOSEND_CADENCE_MS,
    AUTOSEND_MIN_CADENCE_MS,
    STREAM_SILENCE_WINDOW_S,
)
from autochat.state.settings import (
    FileSettings,
    ClientSettings,
    SchedulerSettings,
    StreamingSettings,
    ConnectionSettings,
)


def load_settings(
    *,
    home: Path | None = None,
    cadence_ms: int | None = None,
    silence_window_s: float | None = None,
) -> ClientSettings:
    return ClientSettings(
        connection=ConnectionSettings(
            base_url=WS_BASE_URL,
            open_timeout_s=WS_OPEN_TIMEOUT_S,
            ping_interval_s=WS_PING_INTERVAL_S,
            ping_timeout_s=WS_PING_TIMEOUT_S,
            max_message_bytes=WS_MAX_MESSAGE_BYTES,
        ),
        streaming=StreamingSettings(
            silence_window_s=STREAM_SILENCE_WINDOW_S if silence_window_s is None else max(0.0, float(silence_window_s)),
            batch_mode=STREAM_BATCH_MODE,
        ),
        scheduler=SchedulerSettings(
            cadence_ms=AUTOSEND_CADENCE_MS if cadence_ms is None else max(AUTOSEND_MIN_CADENCE_MS, int(cadence_ms)),
            min_cadence_ms=AUTOSEND_MIN_CADENCE_MS,
        ),
        files=FileSettings(home=AUTOCHAT_HOME if home is None else Path(home)),
    )


__all__ = ["load_settings"]
