from __future__ import annotations

from datetime import UTC, datetime, timedelta

from clonedrive_transfer_sync.domain.transfer_jobs import (
    TransferJob,
    TransferJobStatus,
    TransferJobUpdate,
)
from clonedrive_transfer_sync.infrastructure.store import InMemoryTransferJobStore

_T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _job(
    job_id: str,
    status: TransferJobStatus,
    *,
    minutes: int = 0,
    progress: int = 0,
    **fields: object,
) -> TransferJob:
    return TransferJob(
        job_id=job_id,
        status=status,
        created_at=_T0 + timedelta(minutes=minutes),
        progress=progress,
        **fields,
    )


def test_upsert_inserts_unknown_job_and_notifies_listeners() -> None:
    store = InMemoryTransferJobStore()
    notifications: list[tuple[int, tuple[TransferJob, ...]]] = []
    store.subscribe(lambda revision, jobs: notifications.append((revision, jobs)))

    changed = store.upsert(
        TransferJobUpdate(job_id="job-1", status=TransferJobStatus.QUEUED, file_name="a.txt")
    )

    assert changed is True
    assert store.revision == 1
    job = store.get("job-1")
    assert job is not None
    assert job.status is TransferJobStatus.QUEUED
    assert job.file_name == "a.txt"
    assert job.created_at.tzinfo is not None
    assert len(notifications) == 1
    assert notifications[0][0] == 1
    assert notifications[0][1] == (job,)


def test_upsert_merges_only_non_empty_fields() -> None:
    store = InMemoryTransferJobStore()
    store.replace_snapshot(
        [
            _job(
                "job-1",
                TransferJobStatus.PENDING,
                file_name="report.pdf",
                source_provider="google",
                target_provider="dropbox",
            )
        ]
    )

    store.upsert(
        TransferJobUpdate(
            job_id="job-1",
            status=TransferJobStatus.IN_PROGRESS,
            progress=40,
            file_name="",
        )
    )

    job = store.get("job-1")
    assert job is not None
    assert job.status is TransferJobStatus.IN_PROGRESS
    assert job.progress == 40
    assert job.file_name == "report.pdf"
    assert job.source_provider == "google"
    assert job.target_provider == "dropbox"
    assert job.created_at == _T0


def test_repeated_identical_upsert_does_not_bump_revision() -> None:
    store = InMemoryTransferJobStore()
    update = TransferJobUpdate(job_id="job-1", status=TransferJobStatus.IN_PROGRESS, progress=25)
    notifications: list[int] = []
    store.subscribe(lambda revision, _jobs: notifications.append(revision))

    assert store.upsert(update) is True
    assert store.upsert(update) is False
    assert store.upsert(update) is False

    assert store.revision == 1
    assert notifications == [1]


def test_get_all_orders_newest_first_and_returns_copies() -> None:
    store = InMemoryTransferJobStore()
    store.replace_snapshot(
        [
            _job("old", TransferJobStatus.COMPLETED, minutes=0),
            _job("new", TransferJobStatus.QUEUED, minutes=10),
            _job("mid", TransferJobStatus.FAILED, minutes=5, error_message="quota"),
        ]
    )

    jobs = store.get_all()
    jobs.clear()

    assert [job.job_id for job in store.get_all()] == ["new", "mid", "old"]


def test_active_count_and_clear_terminal() -> None:
    store = InMemoryTransferJobStore()
    store.replace_snapshot(
        [
            _job("queued", TransferJobStatus.QUEUED, minutes=1),
            _job("pending", TransferJobStatus.PENDING, minutes=2),
            _job("running", TransferJobStatus.IN_PROGRESS, minutes=3, progress=10),
            _job("done", TransferJobStatus.COMPLETED, minutes=4),
            _job("failed", TransferJobStatus.FAILED, minutes=5),
            _job("cancelled", TransferJobStatus.CANCELLED, minutes=6),
        ]
    )
    revision = store.revision

    assert store.active_count() == 3
    assert store.clear_terminal() == 3

    assert [job.job_id for job in store.get_all()] == ["running", "pending", "queued"]
    assert store.revision == revision + 1
    assert store.clear_terminal() == 0
    assert store.revision == revision + 1


def test_failing_listener_does_not_block_other_listeners() -> None:
    store = InMemoryTransferJobStore()
    received: list[int] = []

    def broken(_revision: int, _jobs: tuple[TransferJob, ...]) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(broken)
    store.subscribe(lambda revision, _jobs: received.append(revision))

    store.upsert(TransferJobUpdate(job_id="job-1", status=TransferJobStatus.QUEUED))

    assert received == [1]
    assert store.get("job-1") is not None


def test_unsubscribe_stops_notifications() -> None:
    store = InMemoryTransferJobStore()
    received: list[int] = []
    unsubscribe = store.subscribe(lambda revision, _jobs: received.append(revision))

    store.upsert(TransferJobUpdate(job_id="job-1", status=TransferJobStatus.QUEUED))
    unsubscribe()
    store.upsert(TransferJobUpdate(job_id="job-2", status=TransferJobStatus.QUEUED))
    unsubscribe()

    assert received == [1]


def test_snapshot_keeps_terminal_records_missing_from_listing() -> None:
    store = InMemoryTransferJobStore()
    store.replace_snapshot([_job("done", TransferJobStatus.COMPLETED)])

    store.replace_snapshot([_job("other", TransferJobStatus.QUEUED, minutes=1)])

    assert [job.job_id for job in store.get_all()] == ["other", "done"]
