"""Domain exceptions for transfer job synchronization."""


class TransferSyncError(Exception):
    """Base class for synchronization errors."""


class SnapshotFetchError(TransferSyncError):
    """Raised when the authoritative job listing cannot be fetched."""


class SnapshotUnauthorizedError(SnapshotFetchError):
    """Raised when the job listing rejects the current session (HTTP 401)."""


class EventStreamError(TransferSyncError):
    """Raised when the event stream subscription fails or drops."""


class EventStreamUnauthorizedError(EventStreamError):
    """Raised when the event stream rejects the current session (HTTP 401)."""


class TransferEventPayloadError(TransferSyncError):
    """Raised when a stream event payload cannot be parsed or validated."""


class TransferSyncStateError(TransferSyncError):
    """Raised when a lifecycle operation conflicts with the current service state."""


__all__ = [
    "EventStreamError",
    "EventStreamUnauthorizedError",
    "SnapshotFetchError",
    "SnapshotUnauthorizedError",
    "TransferEventPayloadError",
    "TransferSyncError",
    "TransferSyncStateError",
]
