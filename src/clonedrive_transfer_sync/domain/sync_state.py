"""Connection states and read-only views published to subscribers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from clonedrive_transfer_sync.domain.transfer_jobs import TransferJob


class StreamConnectionState(StrEnum):
    """Lifecycle of the push subscription as seen by subscribers."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    DISCONNECTED = "disconnected"
    SUSPENDED = "suspended"
    STOPPED = "stopped"


@dataclass(slots=True, frozen=True)
class TransferSyncView:
    """Fully merged state handed to subscribers after every change."""

    revision: int
    jobs: tuple[TransferJob, ...]
    connection_state: StreamConnectionState

    @property
    def active_count(self) -> int:
        """Number of queued, pending or running jobs."""

        return sum(1 for job in self.jobs if job.is_active)


__all__ = ["StreamConnectionState", "TransferSyncView"]
