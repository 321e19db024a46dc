"""Domain public API."""

from clonedrive_transfer_sync.domain.auth import AuthContext
from clonedrive_transfer_sync.domain.errors import (
    EventStreamError,
    EventStreamUnauthorizedError,
    SnapshotFetchError,
    SnapshotUnauthorizedError,
    TransferEventPayloadError,
    TransferSyncError,
    TransferSyncStateError,
)
from clonedrive_transfer_sync.domain.events import (
    CancelledEvent,
    CompletedEvent,
    ConnectedEvent,
    FailedEvent,
    HeartbeatEvent,
    JobEvent,
    ProgressEvent,
    RetryEvent,
    TransferEvent,
    TransferEventKind,
    parse_transfer_event,
)
from clonedrive_transfer_sync.domain.monitoring_models import (
    ClearTerminalResponse,
    TransferJobListResponse,
    TransferJobResponse,
    TransferSyncStatusResponse,
)
from clonedrive_transfer_sync.domain.ports import (
    StoreListener,
    TransferEventSource,
    TransferJobStore,
    TransferSnapshotFetcher,
)
from clonedrive_transfer_sync.domain.reconciliation import (
    merge_snapshot,
    resolve_event,
    sort_for_display,
    update_for_event,
)
from clonedrive_transfer_sync.domain.snapshot_models import TransferJobSnapshotRow
from clonedrive_transfer_sync.domain.sync_state import StreamConnectionState, TransferSyncView
from clonedrive_transfer_sync.domain.transfer_jobs import (
    ACTIVE_TRANSFER_JOB_STATUSES,
    TERMINAL_TRANSFER_JOB_STATUSES,
    TransferJob,
    TransferJobStatus,
    TransferJobUpdate,
    clamp_progress,
    is_transition_allowed,
)

__all__ = [
    "ACTIVE_TRANSFER_JOB_STATUSES",
    "AuthContext",
    "CancelledEvent",
    "ClearTerminalResponse",
    "CompletedEvent",
    "ConnectedEvent",
    "EventStreamError",
    "EventStreamUnauthorizedError",
    "FailedEvent",
    "HeartbeatEvent",
    "JobEvent",
    "ProgressEvent",
    "RetryEvent",
    "SnapshotFetchError",
    "SnapshotUnauthorizedError",
    "StoreListener",
    "StreamConnectionState",
    "TERMINAL_TRANSFER_JOB_STATUSES",
    "TransferEvent",
    "TransferEventKind",
    "TransferEventPayloadError",
    "TransferEventSource",
    "TransferJob",
    "TransferJobListResponse",
    "TransferJobResponse",
    "TransferJobSnapshotRow",
    "TransferJobStatus",
    "TransferJobStore",
    "TransferJobUpdate",
    "TransferSnapshotFetcher",
    "TransferSyncError",
    "TransferSyncStateError",
    "TransferSyncStatusResponse",
    "TransferSyncView",
    "clamp_progress",
    "is_transition_allowed",
    "merge_snapshot",
    "parse_transfer_event",
    "resolve_event",
    "sort_for_display",
    "update_for_event",
]
