"""Shared error types for the chat session client."""

from __future__ import annotations

from dataclasses import dataclass


class ChatClientError(Exception):
    """Base class for errors raised inside the session core."""


@dataclass(frozen=True, slots=True)
class ConnectionUnavailable(ChatClientError):
    """Raised when no open connection could be obtained.

    ConnectionManager.require_open() raises it with the reason of the last
    failed attempt; send() raises the NotConnected subclass.
    """

    reason: str = "connection unavailable"

    def __str__(self) -> str:
        return self.reason


@dataclass(frozen=True, slots=True)
class NotConnected(ConnectionUnavailable):
    """Raised by send() when the connection is not open."""

    reason: str = "not connected"


@dataclass(frozen=True, slots=True)
class MalformedFrame(ChatClientError):
    """Raised when an inbound payload cannot be decoded into a frame."""

    reason: str

    def __str__(self) -> str:
        return self.reason


@dataclass(frozen=True, slots=True)
class ConfigUnavailable(ChatClientError):
    """Raised by the config/prompt loaders; surfaced to callers as a not-ready flag."""

    source: str
    reason: str

    def __str__(self) -> str:
        return f"{self.source}: {self.reason}"


__all__ = [
    "ChatClientError",
    "ConfigUnavailable",
    "ConnectionUnavailable",
    "MalformedFrame",
    "NotConnected",
]
