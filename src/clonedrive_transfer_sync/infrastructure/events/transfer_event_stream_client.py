"""Background subscription to the transfer event stream with reconnect."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import aclosing, suppress

from clonedrive_transfer_sync.domain.auth import AuthContext
from clonedrive_transfer_sync.domain.errors import (
    EventStreamError,
    EventStreamUnauthorizedError,
)
from clonedrive_transfer_sync.domain.events import (
    ConnectedEvent,
    HeartbeatEvent,
    TransferEvent,
)
from clonedrive_transfer_sync.domain.ports import TransferEventSource
from clonedrive_transfer_sync.domain.sync_state import StreamConnectionState
from clonedrive_transfer_sync.infrastructure.events.reconnect_backoff import ReconnectBackoff

logger = logging.getLogger(__name__)

EventHandler = Callable[[TransferEvent], None]
ConnectedHandler = Callable[[bool], None]
StateChangeHandler = Callable[[StreamConnectionState], None]
SleepFunction = Callable[[float], Awaitable[None]]


class TransferEventStreamClient:
    """Keep one event stream subscription open until stopped.

    A dropped subscription is reopened after an exponential backoff delay.
    The attempt counter resets once the server confirms a new subscription
    with a `connected` event; after `max_attempts` consecutive failures the
    client gives up in `disconnected`. A rejected session moves the client to
    `suspended` without any retry.
    """

    def __init__(
        self,
        event_source: TransferEventSource,
        *,
        on_event: EventHandler,
        on_connected: ConnectedHandler | None = None,
        on_state_change: StateChangeHandler | None = None,
        backoff: ReconnectBackoff | None = None,
        sleep: SleepFunction | None = None,
    ) -> None:
        self._event_source = event_source
        self._on_event = on_event
        self._on_connected = on_connected
        self._on_state_change = on_state_change
        self._backoff = backoff or ReconnectBackoff()
        self._sleep = sleep or self._wait_before_reconnect

        self._auth = AuthContext()
        self._attempt = 0
        self._subscriptions = 0
        self._state = StreamConnectionState.IDLE

        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._lifecycle_lock = asyncio.Lock()

    @property
    def state(self) -> StreamConnectionState:
        return self._state

    @property
    def attempt(self) -> int:
        """Consecutive failed subscriptions since the last `connected` event."""

        return self._attempt

    @property
    def running(self) -> bool:
        task = self._task
        return task is not None and not task.done()

    async def start(self, auth: AuthContext) -> None:
        """Open a fresh subscription loop if one is not already running."""

        async with self._lifecycle_lock:
            if self.running:
                return

            self._auth = auth
            self._attempt = 0
            self._subscriptions = 0
            self._stopping.clear()
            self._set_state(StreamConnectionState.CONNECTING)
            self._task = asyncio.create_task(
                self._run_loop(),
                name="transfer-event-stream-client",
            )

    async def stop(
        self,
        final_state: StreamConnectionState = StreamConnectionState.STOPPED,
    ) -> None:
        """Close the subscription and cancel any pending reconnect wait."""

        async with self._lifecycle_lock:
            task = self._task
            self._task = None
            self._stopping.set()
            if task is not None and task is not asyncio.current_task():
                task.cancel()
            else:
                task = None

        if task is not None:
            with suppress(asyncio.CancelledError):
                await task
        self._set_state(final_state)

    async def restart(self, auth: AuthContext) -> None:
        """Drop the current subscription and subscribe again from attempt zero."""

        await self.stop(StreamConnectionState.CONNECTING)
        await self.start(auth)

    async def _run_loop(self) -> None:
        while not self._stopping.is_set():
            self._subscriptions += 1
            reconnected = self._subscriptions > 1
            try:
                await self._consume(reconnected)
                logger.info("Transfer event stream closed by the server.")
            except EventStreamUnauthorizedError as exc:
                logger.warning("Transfer event stream suspended: %s", exc)
                self._set_state(StreamConnectionState.SUSPENDED)
                return
            except EventStreamError as exc:
                logger.warning("Transfer event stream dropped: %s", exc)
            except Exception:
                logger.exception("Transfer event stream loop failed.")

            if self._stopping.is_set():
                return
            if self._backoff.exhausted(self._attempt):
                logger.warning(
                    "Transfer event stream gave up after %s reconnect attempts.",
                    self._attempt,
                )
                self._set_state(StreamConnectionState.DISCONNECTED)
                return

            delay = self._backoff.delay_for(self._attempt)
            self._attempt += 1
            self._set_state(StreamConnectionState.RECONNECTING)
            logger.info(
                "Reconnecting transfer event stream in %.1fs (attempt %s of %s).",
                delay,
                self._attempt,
                self._backoff.max_attempts,
            )
            await self._sleep(delay)

    async def _consume(self, reconnected: bool) -> None:
        async with aclosing(self._event_source.stream(self._auth)) as events:
            async for event in events:
                if self._stopping.is_set():
                    return
                if isinstance(event, ConnectedEvent):
                    self._handle_connected(reconnected)
                    continue
                if isinstance(event, HeartbeatEvent):
                    continue
                try:
                    self._on_event(event)
                except Exception:
                    logger.exception("Transfer event handler failed for '%s'.", event.kind)

    def _handle_connected(self, reconnected: bool) -> None:
        self._attempt = 0
        self._set_state(StreamConnectionState.CONNECTED)
        if self._on_connected is None:
            return
        try:
            self._on_connected(reconnected)
        except Exception:
            logger.exception("Transfer event stream connect handler failed.")

    async def _wait_before_reconnect(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except TimeoutError:
            pass

    def _set_state(self, state: StreamConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        if self._on_state_change is None:
            return
        try:
            self._on_state_change(state)
        except Exception:
            logger.exception("Transfer event stream state handler failed.")


__all__ = ["TransferEventStreamClient"]
