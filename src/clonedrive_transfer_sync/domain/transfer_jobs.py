"""Transfer job records and status graph."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum


class TransferJobStatus(StrEnum):
    """Lifecycle states reported by the transfer worker."""

    QUEUED = "queued"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


ACTIVE_TRANSFER_JOB_STATUSES = frozenset(
    {
        TransferJobStatus.QUEUED,
        TransferJobStatus.PENDING,
        TransferJobStatus.IN_PROGRESS,
    }
)

TERMINAL_TRANSFER_JOB_STATUSES = frozenset(
    {
        TransferJobStatus.COMPLETED,
        TransferJobStatus.FAILED,
        TransferJobStatus.CANCELLED,
    }
)

# `failed` is only left through a retry; `completed` and `cancelled` are final.
_ALLOWED_TRANSITIONS: dict[TransferJobStatus, frozenset[TransferJobStatus]] = {
    TransferJobStatus.QUEUED: frozenset(TransferJobStatus),
    TransferJobStatus.PENDING: frozenset(TransferJobStatus) - {TransferJobStatus.QUEUED},
    TransferJobStatus.IN_PROGRESS: frozenset(
        {
            TransferJobStatus.IN_PROGRESS,
            TransferJobStatus.COMPLETED,
            TransferJobStatus.FAILED,
            TransferJobStatus.CANCELLED,
        }
    ),
    TransferJobStatus.FAILED: frozenset({TransferJobStatus.PENDING}),
    TransferJobStatus.COMPLETED: frozenset(),
    TransferJobStatus.CANCELLED: frozenset(),
}


def is_transition_allowed(current: TransferJobStatus, target: TransferJobStatus) -> bool:
    """Return whether the status graph permits moving from `current` to `target`."""

    return target in _ALLOWED_TRANSITIONS[current]


def clamp_progress(value: int) -> int:
    """Clamp a percentage into 0-100."""

    return max(0, min(100, value))


@dataclass(slots=True, frozen=True)
class TransferJob:
    """Immutable view of one asynchronous transfer job."""

    job_id: str
    status: TransferJobStatus
    created_at: datetime
    file_name: str = ""
    progress: int = 0
    source_provider: str = ""
    target_provider: str = ""
    error_message: str | None = None
    copied_file_url: str | None = None
    attempts: int | None = None

    @property
    def is_active(self) -> bool:
        """Return whether the job is still queued or running."""

        return self.status in ACTIVE_TRANSFER_JOB_STATUSES

    @property
    def is_terminal(self) -> bool:
        """Return whether the job reached a final or failed state."""

        return self.status in TERMINAL_TRANSFER_JOB_STATUSES

    def merged(self, update: TransferJobUpdate) -> TransferJob:
        """Shallow-merge non-empty update fields onto this record."""

        changes: dict[str, object] = {}
        for name in _UPDATE_FIELDS:
            value = getattr(update, name)
            if value is None or value == "":
                continue
            changes[name] = value
        return replace(self, **changes).normalized()

    def normalized(self) -> TransferJob:
        """Drop fields that are not meaningful for the current status."""

        error_message = (
            self.error_message if self.status is TransferJobStatus.FAILED else None
        )
        copied_file_url = (
            self.copied_file_url if self.status is TransferJobStatus.COMPLETED else None
        )
        progress = clamp_progress(self.progress)
        if (
            error_message == self.error_message
            and copied_file_url == self.copied_file_url
            and progress == self.progress
        ):
            return self
        return replace(
            self,
            error_message=error_message,
            copied_file_url=copied_file_url,
            progress=progress,
        )


@dataclass(slots=True, frozen=True)
class TransferJobUpdate:
    """Partial job record; `None` fields leave the stored value unchanged."""

    job_id: str
    status: TransferJobStatus | None = None
    file_name: str | None = None
    progress: int | None = None
    source_provider: str | None = None
    target_provider: str | None = None
    error_message: str | None = None
    copied_file_url: str | None = None
    attempts: int | None = None
    created_at: datetime | None = None

    def to_job(self, now: datetime | None = None) -> TransferJob:
        """Build a new record for an id the store has not seen yet."""

        created_at = self.created_at or now or datetime.now(tz=UTC)
        return TransferJob(
            job_id=self.job_id,
            status=self.status or TransferJobStatus.IN_PROGRESS,
            created_at=created_at,
            file_name=self.file_name or "",
            progress=self.progress or 0,
            source_provider=self.source_provider or "",
            target_provider=self.target_provider or "",
            error_message=self.error_message,
            copied_file_url=self.copied_file_url,
            attempts=self.attempts,
        ).normalized()


_UPDATE_FIELDS = (
    "status",
    "file_name",
    "progress",
    "source_provider",
    "target_provider",
    "error_message",
    "copied_file_url",
    "attempts",
    "created_at",
)


__all__ = [
    "ACTIVE_TRANSFER_JOB_STATUSES",
    "TERMINAL_TRANSFER_JOB_STATUSES",
    "TransferJob",
    "TransferJobStatus",
    "TransferJobUpdate",
    "clamp_progress",
    "is_transition_allowed",
]
