"""In-memory job store shared by the reconciler and its readers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from clonedrive_transfer_sync.domain.ports import StoreListener, TransferJobStore
from clonedrive_transfer_sync.domain.reconciliation import merge_snapshot, sort_for_display
from clonedrive_transfer_sync.domain.transfer_jobs import TransferJob, TransferJobUpdate

logger = logging.getLogger(__name__)


class InMemoryTransferJobStore(TransferJobStore):
    """Keep the canonical job records and notify listeners on change.

    Every write computes the next state first and then swaps the internal
    mapping and display order in one step, so readers never observe a partial
    merge. Records are immutable; readers cannot mutate stored state.
    """

    def __init__(self, *, accept_terminal_snapshot_rows: bool = False) -> None:
        self._accept_terminal_snapshot_rows = accept_terminal_snapshot_rows
        self._by_job_id: dict[str, TransferJob] = {}
        self._ordered: tuple[TransferJob, ...] = ()
        self._revision = 0
        self._listeners: list[StoreListener] = []

    @property
    def revision(self) -> int:
        return self._revision

    def get(self, job_id: str) -> TransferJob | None:
        return self._by_job_id.get(job_id)

    def get_all(self) -> list[TransferJob]:
        return list(self._ordered)

    def active_count(self) -> int:
        return sum(1 for job in self._ordered if job.is_active)

    def upsert(self, update: TransferJobUpdate) -> bool:
        """Merge non-empty fields onto an existing job or insert a new one."""

        existing = self._by_job_id.get(update.job_id)
        if existing is None:
            job = update.to_job(now=datetime.now(tz=UTC))
        else:
            job = existing.merged(update)
            if job == existing:
                return False

        by_job_id = dict(self._by_job_id)
        by_job_id[job.job_id] = job
        self._commit(by_job_id, sort_for_display(by_job_id.values()))
        return True

    def replace_snapshot(self, jobs: Iterable[TransferJob]) -> None:
        """Merge a fetched listing under the precedence rule and publish it."""

        merged = merge_snapshot(
            self._by_job_id,
            jobs,
            accept_terminal_rows=self._accept_terminal_snapshot_rows,
        )
        self._commit({job.job_id: job for job in merged}, merged)

    def clear_terminal(self) -> int:
        """Drop completed, failed and cancelled jobs."""

        kept = [job for job in self._ordered if not job.is_terminal]
        removed = len(self._ordered) - len(kept)
        if removed == 0:
            return 0
        self._commit({job.job_id: job for job in kept}, kept)
        return removed

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener called with `(revision, jobs)` after each write."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _commit(self, by_job_id: dict[str, TransferJob], ordered: list[TransferJob]) -> None:
        self._by_job_id = by_job_id
        self._ordered = tuple(ordered)
        self._revision += 1
        self._notify()

    def _notify(self) -> None:
        revision = self._revision
        jobs = self._ordered
        for listener in list(self._listeners):
            try:
                listener(revision, jobs)
            except Exception:
                logger.exception("Transfer job store listener failed at revision %s.", revision)


__all__ = ["InMemoryTransferJobStore"]
