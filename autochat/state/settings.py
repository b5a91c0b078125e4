"""Runtime settings (dataclasses only)."""

from __future__ import annotations

from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ConnectionSettings:
    base_url: str
    open_timeout_s: float
    ping_interval_s: float | None
    ping_timeout_s: float | None
    max_message_bytes: int


@dataclass(frozen=True, slots=True)
class StreamingSettings:
    silence_window_s: float
    batch_mode: str


@dataclass(frozen=True, slots=True)
class SchedulerSettings:
    cadence_ms: int
    min_cadence_ms: int


@dataclass(frozen=True, slots=True)
class FileSettings:
    home: Path


@dataclass(frozen=True, slots=True)
class ChatConfig:
    """Connection target supplied by the config collaborator."""

    agent_id: str
    token: str


@dataclass(frozen=True, slots=True)
class ClientSettings:
    connection: ConnectionSettings
    streaming: StreamingSettings
    scheduler: SchedulerSettings
    files: FileSettings


__all__ = [
    "ChatConfig",
    "ClientSettings",
    "ConnectionSettings",
    "FileSettings",
    "SchedulerSettings",
    "StreamingSettings",
]
