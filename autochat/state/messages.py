"""Chat message records and decoded protocol frames."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Sender(str, enum.Enum):
    USER = "User"
    AGENT = "Agent"


@dataclass(frozen=True, slots=True)
class FinalizedMessage:
    """One completed chat message; never mutated after it enters history."""

    id: str
    text: str
    sender: Sender


@dataclass(frozen=True, slots=True)
class SingleMessage:
    id: str
    sender: str
    text: str


@dataclass(frozen=True, slots=True)
class MessageBatch:
    messages: tuple[SingleMessage, ...]

    @property
    def last(self) -> SingleMessage | None:
        return self.messages[-1] if self.messages else None


InboundFrame = SingleMessage | MessageBatch

__all__ = [
    "FinalizedMessage",
    "InboundFrame",
    "MessageBatch",
    "Sender",
    "SingleMessage",
]
