from __future__ import annotations

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio

from autochat.errors import NotConnected, ConnectionUnavailable
from autochat.runtime.pump import EventPump
from autochat.state import ChatConfig, SessionState, ConnectionStatus
from autochat.handlers.connections import ConnectionManager, build_chat_url
from tests.support import FakeConnector, wait_until, agent_frame, make_settings


class _Harness:
    def __init__(self, connector: FakeConnector) -> None:
        self.state = SessionState()
        self.pump = EventPump()
        self.frames: list[str | bytes] = []
        self.resets = 0
        self.statuses: list[ConnectionStatus] = []
        self.connector = connector
        self.manager = ConnectionManager(
            self.state,
            self.pump,
            make_settings().connection,
            on_frame=self.frames.append,
            on_reset=self._reset,
            on_status=self.statuses.append,
            connect_fn=connector,
        )
        self.manager.set_target(ChatConfig(agent_id="agent-1", token="tok en"))

    def _reset(self) -> None:
        self.resets += 1


@pytest_asyncio.fixture
async def harness(connector: FakeConnector):
    h = _Harness(connector)
    h.pump.start()
    yield h
    await h.manager.close()
    await h.pump.stop()


def test_build_chat_url_encodes_credentials() -> None:
    url = build_chat_url("wss://api.example.test/api/chat", ChatConfig(agent_id="A1", token="a+b/c"))
    parsed = urlparse(url)
    assert parsed.path == "/api/chat"
    assert parse_qs(parsed.query) == {"agentId": ["A1"], "token": ["a+b/c"]}


def test_build_chat_url_appends_to_existing_query() -> None:
    url = build_chat_url("wss://x.test/chat?v=2", ChatConfig(agent_id="A", token="T"))
    assert url == "wss://x.test/chat?v=2&agentId=A&token=T"


@pytest.mark.asyncio
async def test_open_passes_url_and_options(harness: _Harness) -> None:
    ws = await harness.manager.ensure_open()
    assert ws is harness.connector.last
    url, options = harness.connector.calls[0]
    assert "agentId=agent-1" in url
    assert options["open_timeout"] == 1.0
    assert options["max_size"] == 1024 * 1024
    assert harness.manager.status is ConnectionStatus.OPEN
    assert harness.statuses == [ConnectionStatus.OPENING, ConnectionStatus.OPEN]


@pytest.mark.asyncio
async def test_concurrent_ensure_open_shares_one_attempt(harness: _Harness) -> None:
    harness.connector.gate = asyncio.Event()
    first = asyncio.create_task(harness.manager.ensure_open())
    second = asyncio.create_task(harness.manager.ensure_open())
    await asyncio.sleep(0.01)
    assert harness.state.status is ConnectionStatus.OPENING
    harness.connector.gate.set()

    a, b = await asyncio.gather(first, second)
    assert len(harness.connector.calls) == 1
    assert a is b is harness.connector.last


@pytest.mark.asyncio
async def test_concurrent_ensure_open_failure_reaches_every_caller(harness: _Harness) -> None:
    harness.connector.fail = True
    harness.connector.gate = asyncio.Event()
    waiters = [asyncio.create_task(harness.manager.ensure_open()) for _ in range(3)]
    await asyncio.sleep(0.01)
    harness.connector.gate.set()

    assert await asyncio.gather(*waiters) == [None, None, None]
    assert len(harness.connector.calls) == 1
    assert harness.state.status is ConnectionStatus.CLOSED

    # The failed attempt's handle is cleared, so the next call starts fresh.
    harness.connector.fail = False
    harness.connector.gate = None
    assert await harness.manager.ensure_open() is not None
    assert len(harness.connector.calls) == 2


@pytest.mark.asyncio
async def test_ensure_open_reuses_open_connection(harness: _Harness) -> None:
    ws = await harness.manager.ensure_open()
    assert await harness.manager.ensure_open() is ws
    assert len(harness.connector.calls) == 1


@pytest.mark.asyncio
async def test_no_target_is_unavailable(harness: _Harness) -> None:
    harness.manager.set_target(None)
    assert await harness.manager.ensure_open() is None
    assert harness.connector.calls == []


@pytest.mark.asyncio
async def test_send_requires_open_connection(harness: _Harness) -> None:
    with pytest.raises(NotConnected):
        harness.manager.send({"type": "ChatMsg", "text": "x"})


@pytest.mark.asyncio
async def test_send_writes_frames_in_order(harness: _Harness) -> None:
    ws = await harness.manager.ensure_open()
    for i in range(5):
        harness.manager.send({"type": "ChatMsg", "text": str(i)})
    await wait_until(lambda: len(ws.sent) == 5)
    assert ws.sent_texts() == ["0", "1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_inbound_frames_are_posted_to_the_pump(harness: _Harness) -> None:
    ws = await harness.manager.ensure_open()
    ws.push_json(agent_frame("m1", "Hel"))
    ws.push_json(agent_frame("m1", "Hello"))
    await wait_until(lambda: len(harness.frames) == 2)
    assert '"Hello"' in harness.frames[1]


@pytest.mark.asyncio
async def test_reconnect_tears_down_and_opens_new(harness: _Harness) -> None:
    old = await harness.manager.ensure_open()
    resets_before = harness.resets

    new = await harness.manager.reconnect()
    assert new is not old
    assert old.closed and old.close_code == 1000
    assert harness.state.status is ConnectionStatus.OPEN
    await harness.pump.drain()
    assert harness.resets > resets_before

    # Late close of the superseded socket must not affect the current one.
    old.drop()
    await asyncio.sleep(0.01)
    assert harness.state.status is ConnectionStatus.OPEN


@pytest.mark.asyncio
async def test_reconnect_without_connection_just_opens(harness: _Harness) -> None:
    assert await harness.manager.reconnect() is not None
    assert len(harness.connector.calls) == 1


@pytest.mark.asyncio
async def test_server_close_marks_closed_and_resets(harness: _Harness) -> None:
    ws = await harness.manager.ensure_open()
    await harness.pump.drain()
    resets_before = harness.resets

    ws.drop()
    await wait_until(lambda: harness.state.status is ConnectionStatus.CLOSED)
    await harness.pump.drain()
    assert harness.resets == resets_before + 1
    assert harness.manager.connection is None
    with pytest.raises(NotConnected):
        harness.manager.send({"type": "ChatMsg", "text": "x"})

    assert await harness.manager.ensure_open() is not None
    assert len(harness.connector.calls) == 2


@pytest.mark.asyncio
async def test_close_cancels_pending_open(harness: _Harness) -> None:
    harness.connector.gate = asyncio.Event()
    waiter = asyncio.create_task(harness.manager.ensure_open())
    await asyncio.sleep(0.01)

    await harness.manager.close()
    assert await waiter is None
    assert harness.state.status is ConnectionStatus.CLOSED

    harness.connector.gate = None
    assert await harness.manager.ensure_open() is not None


@pytest.mark.asyncio
async def test_close_is_idempotent(harness: _Harness) -> None:
    await harness.manager.close()
    await harness.manager.close()
    assert harness.statuses == []


@pytest.mark.asyncio
async def test_ensure_open_during_reconnect_joins_it(harness: _Harness) -> None:
    old = await harness.manager.ensure_open()

    reconnected, ensured = await asyncio.gather(harness.manager.reconnect(), harness.manager.ensure_open())

    live = [ws for ws in harness.connector.sockets if not ws.closed]
    assert live == [reconnected]
    assert ensured is reconnected
    assert old.closed
    assert len(harness.connector.calls) == 2
    assert harness.state.status is ConnectionStatus.OPEN


@pytest.mark.asyncio
async def test_reconnect_supersedes_pending_open(harness: _Harness) -> None:
    harness.connector.gate = asyncio.Event()
    waiter = asyncio.create_task(harness.manager.ensure_open())
    await asyncio.sleep(0.01)

    reconnecting = asyncio.create_task(harness.manager.reconnect())
    await asyncio.sleep(0.01)
    harness.connector.gate.set()

    ws = await reconnecting
    assert await waiter is ws
    assert harness.connector.sockets == [ws]
    assert harness.state.status is ConnectionStatus.OPEN


@pytest.mark.asyncio
async def test_overlapping_reconnects_leave_one_socket(harness: _Harness) -> None:
    await harness.manager.ensure_open()
    first, second = await asyncio.gather(harness.manager.reconnect(), harness.manager.reconnect())

    live = [ws for ws in harness.connector.sockets if not ws.closed]
    assert len(live) == 1
    assert second is live[0]
    assert first in (None, second)


@pytest.mark.asyncio
async def test_require_open_raises_with_reason(harness: _Harness) -> None:
    harness.connector.fail = True
    with pytest.raises(ConnectionUnavailable, match="connection refused"):
        await harness.manager.require_open()

    harness.manager.set_target(None)
    with pytest.raises(ConnectionUnavailable, match="no endpoint"):
        await harness.manager.require_open()


@pytest.mark.asyncio
async def test_require_open_returns_connection(harness: _Harness) -> None:
    ws = await harness.manager.require_open()
    assert ws is harness.connector.last
