"""Pure merge rules combining snapshot rows and stream events.

Nothing here touches the store: callers pass the current records in and write
the returned result back in one store operation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace

from clonedrive_transfer_sync.domain.events import (
    CancelledEvent,
    CompletedEvent,
    FailedEvent,
    JobEvent,
    ProgressEvent,
    RetryEvent,
)
from clonedrive_transfer_sync.domain.transfer_jobs import (
    TransferJob,
    TransferJobStatus,
    TransferJobUpdate,
    clamp_progress,
    is_transition_allowed,
)

_FINAL_STATUSES = frozenset({TransferJobStatus.COMPLETED, TransferJobStatus.CANCELLED})


def sort_for_display(jobs: Iterable[TransferJob]) -> list[TransferJob]:
    """Order jobs newest first."""

    return sorted(jobs, key=lambda job: job.created_at, reverse=True)


def merge_snapshot(
    current: Mapping[str, TransferJob],
    fetched: Iterable[TransferJob],
    *,
    accept_terminal_rows: bool = False,
) -> list[TransferJob]:
    """Merge a fetched listing into the current records.

    Active local records win over fetched rows for the same id, and survive
    when the listing does not mention them at all. Every other fetched row is
    adopted, except that a row never moves a completed or cancelled record back
    to an active status.
    """

    fetched_by_id: dict[str, TransferJob] = {}
    for row in fetched:
        fetched_by_id[row.job_id] = row

    merged: dict[str, TransferJob] = {
        job_id: existing
        for job_id, existing in current.items()
        if job_id not in fetched_by_id
    }

    for job_id, row in fetched_by_id.items():
        existing = current.get(job_id)
        if existing is None:
            merged[job_id] = row
            continue
        if existing.is_active:
            if accept_terminal_rows and row.is_terminal:
                merged[job_id] = row
            else:
                merged[job_id] = existing
            continue
        if existing.status in _FINAL_STATUSES and row.is_active:
            merged[job_id] = existing
            continue
        merged[job_id] = row

    return sort_for_display(merged.values())


def update_for_event(event: JobEvent) -> TransferJobUpdate:
    """Translate a job event into the partial record it asks to write."""

    if isinstance(event, ProgressEvent):
        return TransferJobUpdate(
            job_id=event.job_id,
            status=TransferJobStatus.IN_PROGRESS,
            progress=clamp_progress(event.progress_pct),
            file_name=event.file_name,
        )
    if isinstance(event, CompletedEvent):
        return TransferJobUpdate(
            job_id=event.job_id,
            status=TransferJobStatus.COMPLETED,
            progress=100,
            copied_file_url=event.copied_file_url,
            file_name=event.file_name,
        )
    if isinstance(event, FailedEvent):
        return TransferJobUpdate(
            job_id=event.job_id,
            status=TransferJobStatus.FAILED,
            error_message=event.error_message,
        )
    if isinstance(event, CancelledEvent):
        return TransferJobUpdate(job_id=event.job_id, status=TransferJobStatus.CANCELLED)
    if isinstance(event, RetryEvent):
        return TransferJobUpdate(
            job_id=event.job_id,
            status=TransferJobStatus.PENDING,
            attempts=event.attempts,
        )
    raise TypeError(f"Unsupported job event type '{type(event).__name__}'.")


def resolve_event(
    current: TransferJob | None,
    event: JobEvent,
    *,
    monotonic_progress: bool = False,
) -> TransferJobUpdate | None:
    """Return the update an event should apply, or `None` when it is a no-op.

    Unknown ids always produce an insert. Known ids must follow the status
    graph; with `monotonic_progress` a lower percentage for a job that is
    already running keeps the stored percentage.
    """

    update = update_for_event(event)
    if current is None:
        return update

    assert update.status is not None
    if not is_transition_allowed(current.status, update.status):
        return None

    if (
        monotonic_progress
        and update.status is TransferJobStatus.IN_PROGRESS
        and current.status is TransferJobStatus.IN_PROGRESS
        and update.progress is not None
        and update.progress < current.progress
    ):
        update = replace(update, progress=None)
    return update


__all__ = [
    "merge_snapshot",
    "resolve_event",
    "sort_for_display",
    "update_for_event",
]
