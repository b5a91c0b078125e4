"""Per-session mutable state shared by the connection, reassembler and scheduler."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING
from dataclasses import field, dataclass

from .messages import FinalizedMessage

if TYPE_CHECKING:
    from autochat.runtime.pump import Timer


class ConnectionStatus(str, enum.Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


@dataclass(slots=True)
class StreamingBuffer:
    """Accumulated text for one in-flight agent message id."""

    text: str = ""
    shown_length: int = 0
    timer: Timer | None = None
    # Bumped on every reschedule; a finalize carrying an older value is stale.
    generation: int = 0


@dataclass(slots=True)
class SchedulerState:
    running: bool = False
    cadence_ms: int = 8000
    timer: Timer | None = None
    # An index-advance is in flight; ticks are skipped until it completes.
    advancing: bool = False
    # Incremented by every start/stop so late callbacks from an old run are ignored.
    run_id: int = 0


@dataclass(slots=True)
class SessionState:
    status: ConnectionStatus = ConnectionStatus.CLOSED
    buffers: dict[str, StreamingBuffer] = field(default_factory=dict)
    history: list[FinalizedMessage] = field(default_factory=list)
    finalized_ids: set[str] = field(default_factory=set)
    scheduler: SchedulerState = field(default_factory=SchedulerState)
    prompts: list[str] = field(default_factory=list)
    cursor: int = 0
    selected_index: int = 0
    config_ready: bool = False
    prompts_ready: bool = False

    def append_history(self, message: FinalizedMessage) -> None:
        self.history.append(message)
        self.finalized_ids.add(message.id)

    def set_cursor(self, index: int) -> None:
        self.cursor = min(max(0, int(index)), len(self.prompts))

    @property
    def ready(self) -> bool:
        return self.config_ready and self.prompts_ready


__all__ = [
    "ConnectionStatus",
    "SchedulerState",
    "SessionState",
    "StreamingBuffer",
]
