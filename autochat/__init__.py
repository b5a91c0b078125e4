"""Client session layer for a streaming agent chat over WebSocket."""

from .session import ChatSession
from .state import Sender, ConnectionStatus, FinalizedMessage
from .errors import NotConnected, MalformedFrame, ConfigUnavailable, ConnectionUnavailable

__all__ = [
    "ChatSession",
    "ConfigUnavailable",
    "ConnectionStatus",
    "ConnectionUnavailable",
    "FinalizedMessage",
    "MalformedFrame",
    "NotConnected",
    "Sender",
]
