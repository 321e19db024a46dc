"""Transfer job synchronization use-case service."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress

from clonedrive_transfer_sync.application.services.reconciler import TransferJobReconciler
from clonedrive_transfer_sync.application.services.update_channel import TransferUpdateChannel
from clonedrive_transfer_sync.domain.auth import AuthContext
from clonedrive_transfer_sync.domain.errors import (
    SnapshotFetchError,
    SnapshotUnauthorizedError,
    TransferSyncStateError,
)
from clonedrive_transfer_sync.domain.ports import (
    TransferEventSource,
    TransferJobStore,
    TransferSnapshotFetcher,
)
from clonedrive_transfer_sync.domain.sync_state import StreamConnectionState, TransferSyncView
from clonedrive_transfer_sync.domain.transfer_jobs import TransferJob
from clonedrive_transfer_sync.infrastructure.events import (
    ReconnectBackoff,
    TransferEventStreamClient,
)

logger = logging.getLogger(__name__)

ViewListener = Callable[[TransferSyncView], None]


class TransferSyncService:
    """Keep the job store in sync with the snapshot endpoint and event stream.

    `start()` fetches an initial snapshot and opens the event stream
    concurrently. A snapshot is fetched again after every reconnection and,
    when `snapshot_refresh_seconds` is set, on a fixed interval. Every write
    goes through one update channel; subscribers receive a complete
    `TransferSyncView` after each applied write and after each connection
    state change.
    """

    def __init__(
        self,
        store: TransferJobStore,
        reconciler: TransferJobReconciler,
        snapshot_fetcher: TransferSnapshotFetcher,
        event_source: TransferEventSource,
        *,
        backoff: ReconnectBackoff | None = None,
        snapshot_refresh_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._store = store
        self._reconciler = reconciler
        self._snapshot_fetcher = snapshot_fetcher
        self._channel = TransferUpdateChannel(reconciler)
        self._stream_client = TransferEventStreamClient(
            event_source,
            on_event=self._channel.post_event,
            on_connected=self._on_stream_connected,
            on_state_change=self._on_stream_state_change,
            backoff=backoff,
            sleep=sleep,
        )
        if snapshot_refresh_seconds is not None and snapshot_refresh_seconds > 0:
            self._snapshot_refresh_seconds: float | None = snapshot_refresh_seconds
        else:
            self._snapshot_refresh_seconds = None

        self._auth = AuthContext()
        self._running = False
        self._suspended = False
        self._connection_state = StreamConnectionState.IDLE
        self._listeners: list[ViewListener] = []

        self._snapshot_tasks: set[asyncio.Task[None]] = set()
        self._snapshot_lock = asyncio.Lock()
        self._refresh_task: asyncio.Task[None] | None = None
        self._refresh_stop = asyncio.Event()
        self._lifecycle_lock = asyncio.Lock()

        self._store.subscribe(self._on_store_change)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def suspended(self) -> bool:
        """Whether the session was rejected and sync waits for new credentials."""

        return self._suspended

    @property
    def connection_state(self) -> StreamConnectionState:
        return self._connection_state

    async def start(self, auth: AuthContext) -> None:
        """Fetch the initial snapshot and subscribe to the event stream."""

        async with self._lifecycle_lock:
            if self._running:
                raise TransferSyncStateError("Transfer sync service is already running.")

            self._auth = auth
            self._running = True
            self._suspended = False
            await self._channel.start()
            self._schedule_snapshot("initial")
            await self._stream_client.start(auth)
            if self._snapshot_refresh_seconds is not None:
                self._refresh_stop.clear()
                self._refresh_task = asyncio.create_task(
                    self._run_refresh_loop(self._snapshot_refresh_seconds),
                    name="transfer-snapshot-refresh-loop",
                )
            logger.info("Transfer sync service started.")

    async def stop(self) -> None:
        """Tear down the stream, pending waits and in-flight fetches.

        The update channel closes first, so once this returns nothing can
        mutate the store. Stored records are kept. On logout the caller
        should discard the service together with its store, so the previous
        session's jobs are not shown to the next one.
        """

        async with self._lifecycle_lock:
            if not self._running:
                return
            self._running = False

            await self._channel.stop()
            self._refresh_stop.set()
            tasks = list(self._snapshot_tasks)
            if self._refresh_task is not None:
                tasks.append(self._refresh_task)
                self._refresh_task = None
            for task in tasks:
                task.cancel()

            await self._stream_client.stop()
            for task in tasks:
                with suppress(asyncio.CancelledError):
                    await task
            self._snapshot_tasks.clear()
            self._set_connection_state(StreamConnectionState.STOPPED)
            logger.info("Transfer sync service stopped.")

    def get_all(self) -> list[TransferJob]:
        return self._store.get_all()

    def active_count(self) -> int:
        return self._store.active_count()

    def view(self) -> TransferSyncView:
        """Return the current jobs together with the connection state."""

        return TransferSyncView(
            revision=self._store.revision,
            jobs=tuple(self._store.get_all()),
            connection_state=self._connection_state,
        )

    async def clear_terminal(self) -> int:
        """Drop completed, failed and cancelled jobs; return how many were removed."""

        if self._channel.accepting:
            return await self._channel.clear_terminal()
        return self._reconciler.clear_terminal()

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: ViewListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def refresh(self) -> None:
        """Fetch and merge a snapshot now.

        Raises `SnapshotUnauthorizedError` after suspending sync when the
        session is rejected, and `SnapshotFetchError` for other failures.
        """

        if not self._running:
            raise TransferSyncStateError("Transfer sync service is not running.")
        try:
            await self._sync_snapshot()
        except SnapshotUnauthorizedError:
            await self._suspend()
            raise

    async def reconnect(self) -> None:
        """Open a fresh stream subscription and fetch a snapshot.

        A suspended service keeps its rejected session, so it only resumes
        through `reauthenticate()`.
        """

        async with self._lifecycle_lock:
            if not self._running:
                raise TransferSyncStateError("Transfer sync service is not running.")
            if self._suspended:
                raise TransferSyncStateError(
                    "Transfer sync is suspended; reauthenticate before reconnecting."
                )
            await self._stream_client.restart(self._auth)
            self._schedule_snapshot("reconnect")

    async def reauthenticate(self, auth: AuthContext) -> None:
        """Replace the session and resume sync if it was suspended."""

        async with self._lifecycle_lock:
            self._auth = auth
            if not self._running:
                return
            was_suspended = self._suspended
            self._suspended = False
            await self._stream_client.restart(auth)
            self._schedule_snapshot("reauthenticate")
            if was_suspended:
                logger.info("Transfer sync resumed with new credentials.")

    async def _sync_snapshot(self) -> None:
        async with self._snapshot_lock:
            jobs = await self._snapshot_fetcher.fetch_jobs(self._auth)
            await self._channel.apply_snapshot(jobs)

    def _schedule_snapshot(self, reason: str) -> None:
        task = asyncio.create_task(
            self._run_snapshot(reason),
            name=f"transfer-snapshot-{reason}",
        )
        self._snapshot_tasks.add(task)
        task.add_done_callback(self._snapshot_tasks.discard)

    async def _run_snapshot(self, reason: str) -> None:
        try:
            await self._sync_snapshot()
        except SnapshotUnauthorizedError as exc:
            logger.warning("Snapshot fetch (%s) rejected the session: %s", reason, exc)
            await self._suspend()
        except SnapshotFetchError as exc:
            logger.warning("Snapshot fetch (%s) failed: %s", reason, exc)
        except TransferSyncStateError:
            logger.debug("Discarding snapshot (%s) fetched after stop.", reason)
        except Exception:
            logger.exception("Snapshot sync (%s) failed.", reason)

    async def _run_refresh_loop(self, interval: float) -> None:
        while not self._refresh_stop.is_set():
            try:
                await asyncio.wait_for(self._refresh_stop.wait(), timeout=interval)
            except TimeoutError:
                pass
            else:
                return
            if self._suspended:
                continue
            await self._run_snapshot("periodic")

    async def _suspend(self) -> None:
        if not self._running or self._suspended:
            return
        self._suspended = True
        logger.info("Transfer sync suspended until credentials are refreshed.")
        await self._stream_client.stop(StreamConnectionState.SUSPENDED)
        self._set_connection_state(StreamConnectionState.SUSPENDED)

    def _on_stream_connected(self, reconnected: bool) -> None:
        if reconnected and self._running and not self._suspended:
            self._schedule_snapshot("reconnected")

    def _on_stream_state_change(self, state: StreamConnectionState) -> None:
        if state is StreamConnectionState.SUSPENDED:
            self._suspended = True
        if not self._running:
            return
        self._set_connection_state(state)

    def _on_store_change(self, revision: int, jobs: tuple[TransferJob, ...]) -> None:
        self._notify(TransferSyncView(revision, jobs, self._connection_state))

    def _set_connection_state(self, state: StreamConnectionState) -> None:
        if state is self._connection_state:
            return
        self._connection_state = state
        self._notify(self.view())

    def _notify(self, view: TransferSyncView) -> None:
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("Transfer sync subscriber failed at revision %s.", view.revision)


__all__ = ["TransferSyncService", "ViewListener"]
