from .settings import ChatConfig, ClientSettings
from .messages import Sender, MessageBatch, SingleMessage, InboundFrame, FinalizedMessage
from .session import SessionState, SchedulerState, StreamingBuffer, ConnectionStatus

__all__ = [
    "ChatConfig",
    "ClientSettings",
    "ConnectionStatus",
    "FinalizedMessage",
    "InboundFrame",
    "MessageBatch",
    "SchedulerState",
    "Sender",
    "SessionState",
    "SingleMessage",
    "StreamingBuffer",
]
