"""Chat WebSocket protocol configuration and constants."""

from __future__ import annotations

import os

# Frame keys
WS_KEY_TYPE = "type"
WS_KEY_ID = "id"
WS_KEY_TEXT = "text"
WS_KEY_SENDER = "sender"
WS_KEY_MESSAGES = "messages"

# Frame types
WS_TYPE_CHAT_MSG = "ChatMsg"
WS_TYPE_CHAT_MSG_LIST = "ChatMsgList"

# Sender roles
WS_SENDER_USER = "User"
WS_SENDER_AGENT = "Agent"

# Connection URI
WS_QUERY_AGENT_ID = "agentId"
WS_QUERY_TOKEN = "token"

WS_BASE_URL: str = (os.getenv("AUTOCHAT_WS_BASE_URL") or "").strip() or "wss://api.youmio.ai/api/chat"

WS_CLOSE_CLIENT_REQUEST_CODE = 1000

# Client-generated message ids
WS_MESSAGE_ID_LENGTH = 20
WS_MESSAGE_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except Exception:
        return float(default)


WS_OPEN_TIMEOUT_S: float = max(0.1, _get_float("AUTOCHAT_OPEN_TIMEOUT_S", 10.0))

# websockets keepalive; 0 disables protocol-level pings.
_PING_INTERVAL = _get_float("AUTOCHAT_WS_PING_INTERVAL_S", 20.0)
WS_PING_INTERVAL_S: float | None = _PING_INTERVAL if _PING_INTERVAL > 0 else None
_PING_TIMEOUT = _get_float("AUTOCHAT_WS_PING_TIMEOUT_S", 20.0)
WS_PING_TIMEOUT_S: float | None = _PING_TIMEOUT if _PING_TIMEOUT > 0 else None

WS_MAX_MESSAGE_BYTES: int = 8 * 1024 * 1024

__all__ = [
    "WS_KEY_TYPE",
    "WS_KEY_ID",
    "WS_KEY_TEXT",
    "WS_KEY_SENDER",
    "WS_KEY_MESSAGES",
    "WS_TYPE_CHAT_MSG",
    "WS_TYPE_CHAT_MSG_LIST",
    "WS_SENDER_USER",
    "WS_SENDER_AGENT",
    "WS_QUERY_AGENT_ID",
    "WS_QUERY_TOKEN",
    "WS_BASE_URL",
    "WS_CLOSE_CLIENT_REQUEST_CODE",
    "WS_MESSAGE_ID_LENGTH",
    "WS_MESSAGE_ID_ALPHABET",
    "WS_OPEN_TIMEOUT_S",
    "WS_PING_INTERVAL_S",
    "WS_PING_TIMEOUT_S",
    "WS_MAX_MESSAGE_BYTES",
]
