"""Rebuild streamed agent replies from cumulative text snapshots."""

from __future__ import annotations

import logging
from collections.abc import Callable

from autochat.errors import MalformedFrame
from autochat.runtime.pump import EventPump
from autochat.config.websocket import WS_SENDER_AGENT
from autochat.config.streaming import BATCH_MODE_LAST, BATCH_MODE_RESYNC
from autochat.protocol.frames import generate_message_id, parse_inbound_frame
from autochat.state import (
    Sender,
    MessageBatch,
    SessionState,
    InboundFrame,
    SingleMessage,
    StreamingBuffer,
    FinalizedMessage,
)

logger = logging.getLogger(__name__)

FinalizedFn = Callable[[FinalizedMessage], None]


class StreamReassembler:
    """Owns the per-id streaming buffers in SessionState.

    The server resends the whole text accumulated so far for a reply. Only the
    unseen suffix is appended; a reply is finalized once no frame for its id has
    arrived within the silence window.
    """

    def __init__(
        self,
        state: SessionState,
        pump: EventPump,
        *,
        silence_window_s: float,
        batch_mode: str = BATCH_MODE_LAST,
        on_finalized: FinalizedFn | None = None,
    ) -> None:
        self._state = state
        self._pump = pump
        self._silence_window_s = max(0.0, float(silence_window_s))
        self._batch_mode = batch_mode
        self._on_finalized = on_finalized

    def feed_raw(self, raw: str | bytes) -> None:
        try:
            frame = parse_inbound_frame(raw)
        except MalformedFrame as exc:
            logger.debug("dropping malformed frame: %s", exc)
            return
        if frame is not None:
            self.feed(frame)

    def feed(self, frame: InboundFrame) -> None:
        if isinstance(frame, MessageBatch):
            self._feed_batch(frame)
            return
        self.handle_message(frame)

    def _feed_batch(self, batch: MessageBatch) -> None:
        last = batch.last
        if last is None:
            return
        earlier = batch.messages[:-1]
        if earlier:
            logger.info(
                "chat batch: consuming last of %d entries, earlier ids=%s mode=%s",
                len(batch.messages),
                [m.id for m in earlier],
                self._batch_mode,
            )
            if self._batch_mode == BATCH_MODE_RESYNC:
                for entry in earlier:
                    self._resync_entry(entry)
        self.handle_message(last)

    def _resync_entry(self, msg: SingleMessage) -> None:
        if msg.sender != WS_SENDER_AGENT or not msg.id:
            return
        if msg.id in self._state.finalized_ids or msg.id in self._state.buffers:
            return
        text = msg.text.strip()
        if text:
            self._emit(FinalizedMessage(id=msg.id, text=text, sender=Sender.AGENT))

    def handle_message(self, msg: SingleMessage) -> None:
        if msg.sender != WS_SENDER_AGENT:
            return
        if not msg.text:
            return

        msg_id = msg.id or generate_message_id()
        buffer = self._state.buffers.get(msg_id)
        if buffer is None:
            buffer = StreamingBuffer()
            self._state.buffers[msg_id] = buffer

        delta = msg.text[len(buffer.text) :]
        if delta:
            buffer.text += delta
            buffer.shown_length = len(buffer.text)
        self._schedule_finalize(msg_id, buffer)

    def _schedule_finalize(self, msg_id: str, buffer: StreamingBuffer) -> None:
        if buffer.timer is not None:
            buffer.timer.cancel()
        buffer.generation += 1
        generation = buffer.generation
        buffer.timer = self._pump.call_later(self._silence_window_s, lambda: self._finalize(msg_id, generation))

    def _finalize(self, msg_id: str, generation: int) -> None:
        buffer = self._state.buffers.get(msg_id)
        if buffer is None or buffer.generation != generation:
            return
        del self._state.buffers[msg_id]
        if buffer.timer is not None:
            buffer.timer.cancel()
            buffer.timer = None

        text = buffer.text.strip()
        if not text:
            return
        self._emit(FinalizedMessage(id=msg_id, text=text, sender=Sender.AGENT))

    def _emit(self, message: FinalizedMessage) -> None:
        self._state.append_history(message)
        if self._on_finalized is not None:
            try:
                self._on_finalized(message)
            except Exception:
                logger.exception("finalized-message observer failed")

    def reset(self) -> None:
        """Forfeit every partial reply and cancel its silence timer."""
        for buffer in self._state.buffers.values():
            if buffer.timer is not None:
                buffer.timer.cancel()
                buffer.timer = None
        dropped = len(self._state.buffers)
        self._state.buffers.clear()
        if dropped:
            logger.debug("discarded %d partial agent replies", dropped)


__all__ = ["StreamReassembler"]
