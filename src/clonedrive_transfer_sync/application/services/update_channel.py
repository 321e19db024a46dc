"""Serialized update path in front of the reconciler."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

from clonedrive_transfer_sync.application.services.reconciler import TransferJobReconciler
from clonedrive_transfer_sync.domain.errors import TransferSyncStateError
from clonedrive_transfer_sync.domain.events import TransferEvent
from clonedrive_transfer_sync.domain.transfer_jobs import TransferJob

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _EventUpdate:
    event: TransferEvent


@dataclass(slots=True)
class _SnapshotUpdate:
    jobs: list[TransferJob]
    result: asyncio.Future[Any] = field(repr=False)


@dataclass(slots=True)
class _ClearTerminalUpdate:
    result: asyncio.Future[Any] = field(repr=False)


_Update = _EventUpdate | _SnapshotUpdate | _ClearTerminalUpdate


class TransferUpdateChannel:
    """Queue consumed by one task so every store write happens in order.

    Stream events are posted without waiting. Snapshots and clear requests
    return once the consumer has applied them. Each queued item is applied as
    one synchronous reconciler call, so nothing else runs in the middle of a
    write.
    """

    def __init__(self, reconciler: TransferJobReconciler) -> None:
        self._reconciler = reconciler
        self._queue: asyncio.Queue[_Update] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._accepting = False

    @property
    def accepting(self) -> bool:
        return self._accepting

    async def start(self) -> None:
        task = self._task
        if task is not None and not task.done():
            return
        self._queue = asyncio.Queue()
        self._accepting = True
        self._task = asyncio.create_task(self._run_loop(), name="transfer-update-channel")

    async def stop(self) -> None:
        """Stop accepting updates and drop whatever is still queued."""

        self._accepting = False
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

        dropped = 0
        while not self._queue.empty():
            update = self._queue.get_nowait()
            dropped += 1
            if not isinstance(update, _EventUpdate) and not update.result.done():
                update.result.cancel()
        if dropped:
            logger.debug("Dropped %s queued transfer update(s) on stop.", dropped)

    def post_event(self, event: TransferEvent) -> bool:
        """Queue one stream event; return `False` when the channel is closed."""

        if not self._accepting:
            logger.debug("Dropping '%s' event received after stop.", event.kind)
            return False
        self._queue.put_nowait(_EventUpdate(event))
        return True

    async def apply_snapshot(self, jobs: Iterable[TransferJob]) -> None:
        loop = asyncio.get_running_loop()
        update = _SnapshotUpdate(list(jobs), loop.create_future())
        self._submit(update)
        await update.result

    async def clear_terminal(self) -> int:
        loop = asyncio.get_running_loop()
        update = _ClearTerminalUpdate(loop.create_future())
        self._submit(update)
        return await update.result

    def _submit(self, update: _Update) -> None:
        if not self._accepting:
            raise TransferSyncStateError("Transfer update channel is closed.")
        self._queue.put_nowait(update)

    async def _run_loop(self) -> None:
        while True:
            update = await self._queue.get()
            try:
                self._apply(update)
            finally:
                self._queue.task_done()

    def _apply(self, update: _Update) -> None:
        if isinstance(update, _EventUpdate):
            try:
                self._reconciler.apply_event(update.event)
            except Exception:
                logger.exception("Failed to apply '%s' transfer event.", update.event.kind)
            return

        if update.result.done():
            return
        try:
            if isinstance(update, _SnapshotUpdate):
                self._reconciler.apply_snapshot(update.jobs)
                result: Any = None
            else:
                result = self._reconciler.clear_terminal()
        except Exception as exc:
            logger.exception("Failed to apply queued transfer update.")
            update.result.set_exception(exc)
            return
        update.result.set_result(result)


__all__ = ["TransferUpdateChannel"]
