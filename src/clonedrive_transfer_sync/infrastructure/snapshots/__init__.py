"""Snapshot fetcher implementations."""

from clonedrive_transfer_sync.infrastructure.snapshots.http_transfer_job_snapshot_fetcher import (
    HttpTransferJobSnapshotFetcher,
)

__all__ = ["HttpTransferJobSnapshotFetcher"]
