from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

from clonedrive_transfer_sync.domain.auth import AuthContext
from clonedrive_transfer_sync.domain.errors import EventStreamError, EventStreamUnauthorizedError
from clonedrive_transfer_sync.domain.events import (
    CompletedEvent,
    ConnectedEvent,
    HeartbeatEvent,
    ProgressEvent,
    TransferEvent,
)
from clonedrive_transfer_sync.domain.sync_state import StreamConnectionState
from clonedrive_transfer_sync.infrastructure.events import (
    ReconnectBackoff,
    TransferEventStreamClient,
)

_HANG = "hang"


class _ScriptedEventSource:
    """Plays one script per subscription; exceptions in a script are raised."""

    def __init__(self, scripts: list[list[object]], default: list[object] | None = None) -> None:
        self._scripts = list(scripts)
        self._default = default if default is not None else [EventStreamError("stream dropped")]
        self.auths: list[AuthContext] = []

    @property
    def calls(self) -> int:
        return len(self.auths)

    async def stream(self, auth: AuthContext) -> AsyncGenerator[TransferEvent, None]:
        self.auths.append(auth)
        script = self._scripts.pop(0) if self._scripts else self._default
        for item in script:
            if isinstance(item, BaseException):
                raise item
            if item == _HANG:
                await asyncio.Event().wait()
            yield item


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


def test_reconnect_delays_reset_after_successful_subscription() -> None:
    source = _ScriptedEventSource(
        [
            [EventStreamError("down")],
            [EventStreamError("down")],
            [EventStreamError("down")],
            [ConnectedEvent(), EventStreamError("dropped")],
        ]
    )
    delays: list[float] = []
    states: list[StreamConnectionState] = []
    connected: list[bool] = []

    async def record_sleep(delay: float) -> None:
        delays.append(delay)
        await asyncio.sleep(0)

    async def scenario() -> TransferEventStreamClient:
        client = TransferEventStreamClient(
            source,
            on_event=lambda _event: None,
            on_connected=connected.append,
            on_state_change=states.append,
            backoff=ReconnectBackoff(),
            sleep=record_sleep,
        )
        await client.start(AuthContext(access_token="token-1"))
        await _wait_until(lambda: client.state is StreamConnectionState.DISCONNECTED)
        await client.stop(StreamConnectionState.DISCONNECTED)
        return client

    client = asyncio.run(scenario())

    assert delays[:4] == [1, 2, 4, 1]
    assert delays[3:] == [1, 2, 4, 8, 16, 30, 30, 30, 30, 30]
    assert source.calls == 14
    assert connected == [True]
    assert states == [
        StreamConnectionState.CONNECTING,
        StreamConnectionState.RECONNECTING,
        StreamConnectionState.CONNECTED,
        StreamConnectionState.RECONNECTING,
        StreamConnectionState.DISCONNECTED,
    ]
    assert client.state is StreamConnectionState.DISCONNECTED


def test_job_events_are_forwarded_and_heartbeats_skipped() -> None:
    progress = ProgressEvent(job_id="J1", progress_pct=25)
    completed = CompletedEvent(job_id="J1", copied_file_url="https://x/y")
    source = _ScriptedEventSource(
        [[ConnectedEvent(), HeartbeatEvent(), progress, completed, _HANG]]
    )
    received: list[TransferEvent] = []
    connected: list[bool] = []

    async def scenario() -> StreamConnectionState:
        client = TransferEventStreamClient(
            source,
            on_event=received.append,
            on_connected=connected.append,
        )
        await client.start(AuthContext())
        await _wait_until(lambda: len(received) == 2)
        assert client.state is StreamConnectionState.CONNECTED
        await client.stop()
        return client.state

    state = asyncio.run(scenario())

    assert received == [progress, completed]
    assert connected == [False]
    assert state is StreamConnectionState.STOPPED
    assert source.calls == 1


def test_failing_event_handler_does_not_break_the_stream() -> None:
    first = ProgressEvent(job_id="J1", progress_pct=10)
    second = ProgressEvent(job_id="J1", progress_pct=20)
    source = _ScriptedEventSource([[ConnectedEvent(), first, second, _HANG]])
    received: list[TransferEvent] = []

    def handler(event: TransferEvent) -> None:
        if event is first:
            raise RuntimeError("subscriber bug")
        received.append(event)

    async def scenario() -> None:
        client = TransferEventStreamClient(source, on_event=handler)
        await client.start(AuthContext())
        await _wait_until(lambda: received == [second])
        await client.stop()

    asyncio.run(scenario())

    assert source.calls == 1


def test_unauthorized_stream_suspends_without_retry() -> None:
    source = _ScriptedEventSource([[EventStreamUnauthorizedError("401")]])
    delays: list[float] = []

    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    async def scenario() -> StreamConnectionState:
        client = TransferEventStreamClient(
            source,
            on_event=lambda _event: None,
            sleep=record_sleep,
        )
        await client.start(AuthContext(access_token="expired"))
        await _wait_until(lambda: client.state is StreamConnectionState.SUSPENDED)
        await asyncio.sleep(0.01)
        return client.state

    state = asyncio.run(scenario())

    assert state is StreamConnectionState.SUSPENDED
    assert delays == []
    assert source.calls == 1


def test_stop_cancels_pending_reconnect_wait() -> None:
    source = _ScriptedEventSource([[EventStreamError("down")]])

    async def scenario() -> TransferEventStreamClient:
        client = TransferEventStreamClient(
            source,
            on_event=lambda _event: None,
            backoff=ReconnectBackoff(base_delay_seconds=60.0, max_delay_seconds=60.0),
        )
        await client.start(AuthContext())
        await _wait_until(lambda: client.state is StreamConnectionState.RECONNECTING)
        await asyncio.wait_for(client.stop(), timeout=1.0)
        return client

    client = asyncio.run(scenario())

    assert client.state is StreamConnectionState.STOPPED
    assert client.running is False
    assert source.calls == 1


def test_restart_subscribes_again_from_attempt_zero() -> None:
    source = _ScriptedEventSource([[EventStreamError("down")], [ConnectedEvent(), _HANG]])
    connected: list[bool] = []

    async def never_wake(_delay: float) -> None:
        await asyncio.Event().wait()

    fresh_auth = AuthContext(access_token="token-2")

    async def scenario() -> TransferEventStreamClient:
        client = TransferEventStreamClient(
            source,
            on_event=lambda _event: None,
            on_connected=connected.append,
            sleep=never_wake,
        )
        await client.start(AuthContext(access_token="token-1"))
        await _wait_until(lambda: client.attempt == 1)
        await client.restart(fresh_auth)
        await _wait_until(lambda: client.state is StreamConnectionState.CONNECTED)
        attempt = client.attempt
        await client.stop()
        assert attempt == 0
        return client

    asyncio.run(scenario())

    assert source.auths[-1] is fresh_auth
    assert source.calls == 2
    assert connected == [False]
