"""Response models for the transfer sync monitoring routes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clonedrive_transfer_sync.domain.sync_state import StreamConnectionState, TransferSyncView
from clonedrive_transfer_sync.domain.transfer_jobs import TransferJob, TransferJobStatus


class MonitoringModel(BaseModel):
    """Base model for monitoring routes."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class TransferJobResponse(MonitoringModel):
    """One job as shown to out-of-process subscribers."""

    id: str
    file_name: str = Field(alias="fileName")
    status: TransferJobStatus
    progress: int
    source_provider: str = Field(alias="sourceProvider")
    target_provider: str = Field(alias="targetProvider")
    error_message: str | None = Field(default=None, alias="errorMessage")
    copied_file_url: str | None = Field(default=None, alias="copiedFileUrl")
    attempts: int | None = None
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_job(cls, job: TransferJob) -> TransferJobResponse:
        return cls(
            id=job.job_id,
            file_name=job.file_name,
            status=job.status,
            progress=job.progress,
            source_provider=job.source_provider,
            target_provider=job.target_provider,
            error_message=job.error_message,
            copied_file_url=job.copied_file_url,
            attempts=job.attempts,
            created_at=job.created_at,
        )


class TransferSyncStatusResponse(MonitoringModel):
    """Connection state and counters without the job list."""

    connection_state: StreamConnectionState = Field(alias="connectionState")
    revision: int
    total_count: int = Field(alias="totalCount")
    active_count: int = Field(alias="activeCount")

    @classmethod
    def from_view(cls, view: TransferSyncView) -> TransferSyncStatusResponse:
        return cls(
            connection_state=view.connection_state,
            revision=view.revision,
            total_count=len(view.jobs),
            active_count=view.active_count,
        )


class TransferJobListResponse(MonitoringModel):
    """Merged job list, newest first."""

    connection_state: StreamConnectionState = Field(alias="connectionState")
    revision: int
    active_count: int = Field(alias="activeCount")
    jobs: list[TransferJobResponse]

    @classmethod
    def from_view(cls, view: TransferSyncView) -> TransferJobListResponse:
        return cls(
            connection_state=view.connection_state,
            revision=view.revision,
            active_count=view.active_count,
            jobs=[TransferJobResponse.from_job(job) for job in view.jobs],
        )


class ClearTerminalResponse(MonitoringModel):
    """Result of dropping finished jobs."""

    removed_count: int = Field(alias="removedCount")
    active_count: int = Field(alias="activeCount")


__all__ = [
    "ClearTerminalResponse",
    "TransferJobListResponse",
    "TransferJobResponse",
    "TransferSyncStatusResponse",
]
