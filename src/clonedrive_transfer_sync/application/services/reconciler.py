"""Single writer applying snapshots and stream events to the job store."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from clonedrive_transfer_sync.domain.events import (
    CancelledEvent,
    CompletedEvent,
    FailedEvent,
    ProgressEvent,
    RetryEvent,
    TransferEvent,
)
from clonedrive_transfer_sync.domain.ports import TransferJobStore
from clonedrive_transfer_sync.domain.reconciliation import resolve_event
from clonedrive_transfer_sync.domain.transfer_jobs import TransferJob

logger = logging.getLogger(__name__)

_JOB_EVENT_TYPES = (ProgressEvent, CompletedEvent, FailedEvent, CancelledEvent, RetryEvent)


class TransferJobReconciler:
    """Merge pulled and pushed job state into the store."""

    def __init__(self, store: TransferJobStore, *, monotonic_progress: bool = False) -> None:
        self._store = store
        self._monotonic_progress = monotonic_progress

    def apply_event(self, event: TransferEvent) -> bool:
        """Apply one stream event; return whether the store changed."""

        if not isinstance(event, _JOB_EVENT_TYPES):
            return False

        current = self._store.get(event.job_id)
        update = resolve_event(current, event, monotonic_progress=self._monotonic_progress)
        if update is None:
            logger.debug(
                "Ignoring '%s' event for job %s in status '%s'.",
                event.kind,
                event.job_id,
                current.status if current is not None else None,
            )
            return False
        return self._store.upsert(update)

    def apply_snapshot(self, jobs: Iterable[TransferJob]) -> None:
        """Merge a fetched listing; records in flight keep their local state."""

        fetched = list(jobs)
        self._store.replace_snapshot(fetched)
        logger.debug("Merged snapshot of %s job(s) at revision %s.", len(fetched), self._store.revision)

    def clear_terminal(self) -> int:
        return self._store.clear_terminal()


__all__ = ["TransferJobReconciler"]
