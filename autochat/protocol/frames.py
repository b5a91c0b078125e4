"""Chat frame parsing and construction for the agent WebSocket protocol."""

from __future__ import annotations

import time
import secrets
from typing import Any
from collections.abc import Callable

import orjson

from autochat.errors import MalformedFrame
from autochat.state.messages import MessageBatch, InboundFrame, SingleMessage
from autochat.config.websocket import (
    WS_KEY_ID,
    WS_KEY_TEXT,
    WS_KEY_TYPE,
    WS_KEY_SENDER,
    WS_KEY_MESSAGES,
    WS_SENDER_USER,
    WS_TYPE_CHAT_MSG,
    WS_MESSAGE_ID_LENGTH,
    WS_TYPE_CHAT_MSG_LIST,
    WS_MESSAGE_ID_ALPHABET,
)


def generate_message_id(length: int = WS_MESSAGE_ID_LENGTH) -> str:
    return "".join(secrets.choice(WS_MESSAGE_ID_ALPHABET) for _ in range(length))


def _parse_single(obj: Any) -> SingleMessage:
    if not isinstance(obj, dict):
        raise MalformedFrame("chat message must be a JSON object")

    msg_id = obj.get(WS_KEY_ID)
    if msg_id is None:
        msg_id = ""
    if not isinstance(msg_id, str):
        raise MalformedFrame("chat message 'id' must be a string")

    text = obj.get(WS_KEY_TEXT)
    if text is None:
        text = ""
    if not isinstance(text, str):
        raise MalformedFrame("chat message 'text' must be a string")

    sender = obj.get(WS_KEY_SENDER)
    if not isinstance(sender, str):
        sender = ""

    return SingleMessage(id=msg_id, sender=sender, text=text)


def parse_inbound_frame(raw: str | bytes) -> InboundFrame | None:
    """Decode one inbound payload.

    Returns None for well-formed frames of a type this client does not consume.
    Raises MalformedFrame when the payload is not a usable chat frame.
    """
    try:
        msg = orjson.loads(raw)
    except Exception as exc:
        raise MalformedFrame(f"invalid JSON: {exc}") from exc

    if not isinstance(msg, dict):
        raise MalformedFrame("frame must be a JSON object")

    msg_type = msg.get(WS_KEY_TYPE)
    if msg_type == WS_TYPE_CHAT_MSG:
        return _parse_single(msg)

    if msg_type == WS_TYPE_CHAT_MSG_LIST:
        entries = msg.get(WS_KEY_MESSAGES)
        if not isinstance(entries, list):
            raise MalformedFrame("'messages' must be a list")
        return MessageBatch(messages=tuple(_parse_single(entry) for entry in entries))

    return None


def build_chat_message(
    text: str,
    *,
    message_id: str | None = None,
    now_fn: Callable[[], float] | None = None,
) -> dict[str, Any]:
    now = (now_fn or time.time)()
    return {
        WS_KEY_TYPE: WS_TYPE_CHAT_MSG,
        WS_KEY_ID: message_id or generate_message_id(),
        WS_KEY_TEXT: text.strip(),
        WS_KEY_SENDER: WS_SENDER_USER,
        "createdAts": int(now),
        "url": None,
        "b64Data": None,
        "skill": None,
        "messageType": "text",
        "audioEnabled": False,
        "files": [],
        "isBuffer": False,
    }


def encode_frame(frame: dict[str, Any]) -> str:
    return orjson.dumps(frame).decode("utf-8")


__all__ = [
    "build_chat_message",
    "encode_frame",
    "generate_message_id",
    "parse_inbound_frame",
]
