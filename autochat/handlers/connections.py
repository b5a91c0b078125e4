"""Agent WebSocket connection lifecycle with single-flight open coalescing."""

from __future__ import annotations

import asyncio
import logging
import contextlib
from typing import Any
from urllib.parse import urlencode
from collections.abc import Callable, Awaitable

import websockets

from autochat.errors import NotConnected, ConnectionUnavailable
from autochat.runtime.pump import EventPump
from autochat.protocol.frames import encode_frame
from autochat.state.settings import ChatConfig, ConnectionSettings
from autochat.state.session import SessionState, ConnectionStatus
from autochat.config.websocket import WS_QUERY_TOKEN, WS_QUERY_AGENT_ID, WS_CLOSE_CLIENT_REQUEST_CODE

logger = logging.getLogger(__name__)

ConnectFn = Callable[..., Awaitable[Any]]
FrameFn = Callable[[str | bytes], None]
StatusFn = Callable[[ConnectionStatus], None]


def build_chat_url(base_url: str, target: ChatConfig) -> str:
    query = urlencode({WS_QUERY_AGENT_ID: target.agent_id, WS_QUERY_TOKEN: target.token})
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"


class ConnectionManager:
    """Owns the single agent connection of a session.

    At most one connection is open or opening at a time. Concurrent
    ensure_open() callers share the in-flight attempt; the handle is cleared
    whether the attempt succeeds or fails.
    """

    def __init__(
        self,
        state: SessionState,
        pump: EventPump,
        settings: ConnectionSettings,
        *,
        on_frame: FrameFn,
        on_reset: Callable[[], None] | None = None,
        on_status: StatusFn | None = None,
        connect_fn: ConnectFn | None = None,
    ) -> None:
        self._state = state
        self._pump = pump
        self._settings = settings
        self._on_frame = on_frame
        self._on_reset = on_reset
        self._on_status = on_status
        self._connect_fn = connect_fn or websockets.connect

        self._target: ChatConfig | None = None
        self._ws: Any = None
        self._open_task: asyncio.Task | None = None
        self._reader_task: asyncio.Task | None = None
        self._writer_task: asyncio.Task | None = None
        self._outbox: asyncio.Queue[str] | None = None
        self.open_attempts: int = 0
        self.last_error: str = ""

    @property
    def connection(self) -> Any:
        return self._ws if self._state.status is ConnectionStatus.OPEN else None

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    def set_target(self, target: ChatConfig | None) -> None:
        self._target = target

    def _set_status(self, status: ConnectionStatus) -> None:
        if self._state.status is status:
            return
        self._state.status = status
        logger.info("agent connection %s", status.value)
        if self._on_status is not None:
            try:
                self._on_status(status)
            except Exception:
                logger.exception("connection status observer failed")

    def _request_reset(self) -> None:
        # Runs after frames already queued from the old connection.
        if self._on_reset is not None:
            self._pump.post(self._on_reset)

    def _connect_options(self) -> dict[str, Any]:
        return {
            "open_timeout": self._settings.open_timeout_s,
            "ping_interval": self._settings.ping_interval_s,
            "ping_timeout": self._settings.ping_timeout_s,
            "max_size": self._settings.max_message_bytes,
        }

    async def open(self) -> Any:
        """Close any prior connection and open a new one; returns None on failure.

        The replacement attempt is registered before teardown starts, so
        ensure_open() callers arriving meanwhile join it instead of racing it.
        """
        previous = self._open_task
        task = asyncio.create_task(self._reopen(previous))
        self._open_task = task
        return await self._await_attempt(task)

    async def ensure_open(self) -> Any:
        """Return the open connection, joining or starting an open attempt if needed."""
        task = self._open_task
        if task is not None and not task.done():
            return await self._await_attempt(task)
        if self._state.status is ConnectionStatus.OPEN and self._ws is not None:
            return self._ws
        return await self._await_attempt(self._start_attempt())

    async def require_open(self) -> Any:
        """Like ensure_open(), but raise ConnectionUnavailable instead of returning None."""
        ws = await self.ensure_open()
        if ws is None:
            raise ConnectionUnavailable(self.last_error or "connection unavailable")
        return ws

    async def reconnect(self) -> Any:
        logger.info("reconnecting agent connection")
        return await self.open()

    def _start_attempt(self) -> asyncio.Task:
        task = asyncio.create_task(self._open_once())
        self._open_task = task
        return task

    async def _reopen(self, previous: asyncio.Task | None) -> Any:
        if previous is not None and not previous.done():
            previous.cancel()
            await asyncio.wait({previous})
        await self._teardown()
        return await self._open_once()

    async def _await_attempt(self, task: asyncio.Task) -> Any:
        # wait() neither raises for a cancelled attempt nor cancels it when this caller is cancelled.
        while True:
            await asyncio.wait({task})
            if not task.cancelled():
                return task.result()
            # Superseded by a reconnect: follow the attempt that replaced it.
            successor = self._open_task
            if successor is None or successor is task:
                return None
            task = successor

    async def _open_once(self) -> Any:
        try:
            target = self._target
            if target is None:
                self.last_error = "no endpoint configured"
                logger.warning("agent connection unavailable: no endpoint configured")
                self._set_status(ConnectionStatus.CLOSED)
                return None

            self.open_attempts += 1
            self._request_reset()
            self._set_status(ConnectionStatus.OPENING)
            url = build_chat_url(self._settings.base_url, target)
            try:
                ws = await self._connect_fn(url, **self._connect_options())
            except asyncio.CancelledError:
                self._set_status(ConnectionStatus.CLOSED)
                raise
            except Exception as exc:
                self.last_error = f"open failed: {type(exc).__name__}: {exc}"
                logger.warning("agent connection failed: %s: %s", type(exc).__name__, exc)
                self._set_status(ConnectionStatus.CLOSED)
                return None

            self.last_error = ""
            self._ws = ws
            self._outbox = asyncio.Queue()
            self._reader_task = asyncio.create_task(self._reader(ws))
            self._writer_task = asyncio.create_task(self._writer(ws, self._outbox))
            self._set_status(ConnectionStatus.OPEN)
            return ws
        finally:
            if self._open_task is asyncio.current_task():
                self._open_task = None

    def send(self, frame: dict[str, Any]) -> None:
        """Queue a frame for writing; fire-and-forget."""
        if self._state.status is not ConnectionStatus.OPEN or self._outbox is None:
            raise NotConnected()
        self._outbox.put_nowait(encode_frame(frame))

    async def _reader(self, ws: Any) -> None:
        try:
            async for raw in ws:
                self._pump.post(lambda raw=raw: self._on_frame(raw))
        except asyncio.CancelledError:
            raise
        except websockets.exceptions.ConnectionClosed as exc:
            logger.info("agent connection closed code=%s reason=%s", exc.code, exc.reason)
        except Exception:
            logger.warning("agent connection reader failed", exc_info=True)
        finally:
            self._handle_closed(ws)

    async def _writer(self, ws: Any, outbox: asyncio.Queue[str]) -> None:
        while True:
            text = await outbox.get()
            try:
                await ws.send(text)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("agent connection send failed: %s: %s", type(exc).__name__, exc)
                self._handle_closed(ws)
                with contextlib.suppress(Exception):
                    await ws.close()
                return

    def _handle_closed(self, ws: Any) -> None:
        # A reader or writer of a superseded connection must not touch the current one.
        if self._ws is not ws:
            return
        self._ws = None
        self._outbox = None
        for task in (self._reader_task, self._writer_task):
            if task is not None and task is not asyncio.current_task():
                task.cancel()
        self._reader_task = None
        self._writer_task = None
        self._request_reset()
        self._set_status(ConnectionStatus.CLOSED)

    async def close(self) -> None:
        """Tear down any connection or pending open attempt; idempotent."""
        task = self._open_task
        self._open_task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
        await self._teardown()

    async def _teardown(self) -> None:
        ws = self._ws
        if ws is None:
            self._mark_closed()
            return

        self._set_status(ConnectionStatus.CLOSING)
        self._ws = None
        self._outbox = None
        tasks = [t for t in (self._reader_task, self._writer_task) if t is not None and t is not asyncio.current_task()]
        self._reader_task = None
        self._writer_task = None
        try:
            for t in tasks:
                t.cancel()
            if tasks:
                await asyncio.wait(tasks)
        finally:
            # The socket is closed even when this teardown is itself cancelled.
            with contextlib.suppress(Exception):
                await ws.close(code=WS_CLOSE_CLIENT_REQUEST_CODE)
            self._request_reset()
            self._mark_closed()

    def _mark_closed(self) -> None:
        # An attempt started while tearing down owns the status from here on.
        task = self._open_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            return
        self._set_status(ConnectionStatus.CLOSED)


__all__ = ["ConnectionManager", "build_chat_url"]
