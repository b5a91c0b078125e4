"""Chat session facade: the operations a host or UI drives."""

from __future__ import annotations

import logging
from typing import Any
from collections.abc import Callable

from autochat.errors import ConfigUnavailable, ConnectionUnavailable
from autochat.runtime.pump import EventPump
from autochat.protocol.frames import build_chat_message
from autochat.runtime.settings_loader import load_settings
from autochat.handlers.reassembler import StreamReassembler
from autochat.handlers.connections import ConnectFn, ConnectionManager
from autochat.handlers.scheduler import AdvanceFn, DispatchScheduler
from autochat.runtime.loaders import FilePaths, load_config, load_prompt_queue
from autochat.state import (
    Sender,
    ChatConfig,
    SessionState,
    ClientSettings,
    ConnectionStatus,
    FinalizedMessage,
)

logger = logging.getLogger(__name__)

ConfigLoader = Callable[[], ChatConfig]
PromptLoader = Callable[[], list[str]]
MessageFn = Callable[[FinalizedMessage], None]
StatusFn = Callable[[ConnectionStatus], None]


class ChatSession:
    """One agent chat session over a single shared connection.

    Each instance owns its own state, pump and timers, so several sessions
    (one per agent) can run side by side.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        config_loader: ConfigLoader | None = None,
        prompt_loader: PromptLoader | None = None,
        connect_fn: ConnectFn | None = None,
        advance: AdvanceFn | None = None,
        on_message: MessageFn | None = None,
        on_status: StatusFn | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        paths = FilePaths.resolve(self.settings.files.home)
        self._config_loader = config_loader or (lambda: load_config(paths))
        self._prompt_loader = prompt_loader or (lambda: load_prompt_queue(paths))
        self._on_message = on_message

        self.state = SessionState()
        self.pump = EventPump()
        self.reassembler = StreamReassembler(
            self.state,
            self.pump,
            silence_window_s=self.settings.streaming.silence_window_s,
            batch_mode=self.settings.streaming.batch_mode,
            on_finalized=on_message,
        )
        self.connection = ConnectionManager(
            self.state,
            self.pump,
            self.settings.connection,
            on_frame=self.reassembler.feed_raw,
            on_reset=self.reassembler.reset,
            on_status=on_status,
            connect_fn=connect_fn,
        )
        self.scheduler = DispatchScheduler(
            self.state,
            self.pump,
            dispatch=self._send_prompt,
            ensure_open=self.connection.ensure_open,
            cadence_ms=self.settings.scheduler.cadence_ms,
            min_cadence_ms=self.settings.scheduler.min_cadence_ms,
            advance=advance,
        )

    async def __aenter__(self) -> ChatSession:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---- lifecycle ----

    async def open(self) -> bool:
        """Start the pump, load collaborators and connect; False when not ready."""
        self.pump.start()
        self.load_config()
        self.load_prompt_queue()
        if not self.state.config_ready:
            return False
        return await self.connection.ensure_open() is not None

    async def aclose(self) -> None:
        await self.scheduler.shutdown()
        await self.connection.close()
        await self.pump.stop()
        self.reassembler.reset()

    # ---- collaborators ----

    def load_config(self) -> bool:
        try:
            target = self._config_loader()
        except ConfigUnavailable as exc:
            logger.warning("config unavailable: %s", exc)
            self.state.config_ready = False
            self.connection.set_target(None)
            return False
        self.connection.set_target(target)
        self.state.config_ready = True
        return True

    def load_prompt_queue(self) -> bool:
        try:
            prompts = self._prompt_loader()
        except ConfigUnavailable as exc:
            logger.warning("prompt queue unavailable: %s", exc)
            prompts = []
        self.state.prompts = list(prompts)
        self.state.prompts_ready = bool(prompts)
        self.state.set_cursor(0)
        self.state.selected_index = 0
        return self.state.prompts_ready

    def reload_prompt_queue(self) -> bool:
        self.scheduler.stop()
        return self.load_prompt_queue()

    # ---- observation ----

    def get_connection_status(self) -> ConnectionStatus:
        if self.state.status is ConnectionStatus.OPEN:
            return ConnectionStatus.OPEN
        return ConnectionStatus.CLOSED

    def get_history(self) -> list[FinalizedMessage]:
        return list(self.state.history)

    @property
    def ready(self) -> bool:
        return self.state.ready

    @property
    def autosend_running(self) -> bool:
        return self.scheduler.running

    def current_prompt(self) -> str:
        idx = self.state.selected_index
        if 0 <= idx < len(self.state.prompts):
            return self.state.prompts[idx]
        return ""

    # ---- actions ----

    def select_index(self, index: int) -> int:
        if not self.state.prompts:
            self.state.selected_index = 0
        else:
            self.state.selected_index = min(max(0, int(index)), len(self.state.prompts) - 1)
        return self.state.selected_index

    def pick_current_prompt(self) -> str:
        prompt = self.current_prompt()
        if prompt:
            self.scheduler.stop()
        return prompt

    async def reconnect(self) -> bool:
        self.load_config()
        return await self.connection.reconnect() is not None

    async def start(self) -> bool:
        return await self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def set_cadence(self, cadence_ms: int) -> bool:
        try:
            self.scheduler.set_cadence(cadence_ms)
        except ValueError as exc:
            logger.warning("cadence rejected: %s", exc)
            return False
        return True

    async def submit_user_message(self, text: str) -> bool:
        """Send a manually typed message; always interrupts autosend."""
        if not text or not text.strip():
            return False
        self.scheduler.stop()
        frame = build_chat_message(text)
        self._record_user_message(frame["id"], frame["text"])
        return await self._deliver(frame)

    async def _send_prompt(self, text: str) -> bool:
        # An autosent prompt enters history only once it was handed to the connection.
        frame = build_chat_message(text)
        if not await self._deliver(frame):
            return False
        self._record_user_message(frame["id"], frame["text"])
        return True

    async def _deliver(self, frame: dict[str, Any]) -> bool:
        try:
            await self.connection.require_open()
            self.connection.send(frame)
        except ConnectionUnavailable as exc:
            logger.info("message %s not sent: %s", frame["id"], exc)
            return False
        return True

    def _record_user_message(self, message_id: str, text: str) -> None:
        message = FinalizedMessage(id=message_id, text=text, sender=Sender.USER)
        self.state.append_history(message)
        if self._on_message is not None:
            try:
                self._on_message(message)
            except Exception:
                logger.exception("message observer failed")


__all__ = ["ChatSession"]
