"""Infrastructure layer public API."""

from clonedrive_transfer_sync.infrastructure.events import (
    ReconnectBackoff,
    SseTransferEventSource,
    TransferEventStreamClient,
)
from clonedrive_transfer_sync.infrastructure.snapshots import HttpTransferJobSnapshotFetcher
from clonedrive_transfer_sync.infrastructure.store import InMemoryTransferJobStore

__all__ = [
    "HttpTransferJobSnapshotFetcher",
    "InMemoryTransferJobStore",
    "ReconnectBackoff",
    "SseTransferEventSource",
    "TransferEventStreamClient",
]
