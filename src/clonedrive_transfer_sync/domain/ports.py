"""Ports for the job store, snapshot source and event source."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Iterable
from typing import Protocol

from clonedrive_transfer_sync.domain.auth import AuthContext
from clonedrive_transfer_sync.domain.events import TransferEvent
from clonedrive_transfer_sync.domain.transfer_jobs import TransferJob, TransferJobUpdate

StoreListener = Callable[[int, tuple[TransferJob, ...]], None]


class TransferJobStore(Protocol):
    """Canonical in-memory collection of job records."""

    @property
    def revision(self) -> int:
        """Counter bumped on every applied write."""

    def get(self, job_id: str) -> TransferJob | None:
        """Return one job by id."""

    def get_all(self) -> list[TransferJob]:
        """Return all jobs, newest first."""

    def active_count(self) -> int:
        """Return the number of queued, pending or running jobs."""

    def upsert(self, update: TransferJobUpdate) -> bool:
        """Merge or insert one job; return whether the store changed."""

    def replace_snapshot(self, jobs: Iterable[TransferJob]) -> None:
        """Merge a fetched listing under the precedence rule."""

    def clear_terminal(self) -> int:
        """Drop completed, failed and cancelled jobs; return how many were removed."""

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener and return its unsubscribe callable."""

    def unsubscribe(self, listener: StoreListener) -> None:
        """Remove a change listener."""


class TransferSnapshotFetcher(Protocol):
    """Pull port for the authoritative job listing."""

    async def fetch_jobs(self, auth: AuthContext) -> list[TransferJob]:
        """Return every job visible to the authenticated principal."""


class TransferEventSource(Protocol):
    """Push port for one subscription to the job event stream."""

    def stream(self, auth: AuthContext) -> AsyncGenerator[TransferEvent, None]:
        """Open a subscription and yield validated events until it drops.

        Raises `EventStreamUnauthorizedError` when the session is rejected and
        `EventStreamError` for transport failures.
        """


__all__ = [
    "StoreListener",
    "TransferEventSource",
    "TransferJobStore",
    "TransferSnapshotFetcher",
]
