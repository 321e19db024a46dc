"""Pydantic models mapped from the authoritative job listing."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from clonedrive_transfer_sync.domain.transfer_jobs import (
    TransferJob,
    TransferJobStatus,
    clamp_progress,
)


class SnapshotModel(BaseModel):
    """Base model for listing rows; provider-specific extras are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TransferJobSnapshotRow(SnapshotModel):
    """One job row as returned by the listing endpoint."""

    id: str = Field(min_length=1)
    file_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("fileName", "file_name"),
    )
    status: TransferJobStatus
    progress: int | None = Field(
        default=None,
        validation_alias=AliasChoices("progressPct", "progress"),
    )
    source_provider: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sourceProvider", "source_provider"),
    )
    target_provider: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "targetProvider",
            "destProvider",
            "destinationProvider",
            "dest_provider",
        ),
    )
    error_message: str | None = Field(
        default=None,
        validation_alias=AliasChoices("errorMessage", "error_message"),
    )
    copied_file_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("copiedFileUrl", "copied_file_url"),
    )
    attempts: int | None = None
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at"),
    )

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: object) -> object:
        """Accept status values regardless of case and surrounding whitespace."""

        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("progress", mode="before")
    @classmethod
    def round_fractional_percent(cls, value: object) -> object:
        """Accept fractional percentages."""

        if isinstance(value, float):
            return round(value)
        return value

    def to_job(self, fetched_at: datetime) -> TransferJob:
        """Map the wire row to the canonical job record."""

        created_at = self.created_at or fetched_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return TransferJob(
            job_id=self.id,
            status=self.status,
            created_at=created_at,
            file_name=self.file_name or "",
            progress=clamp_progress(self.progress or 0),
            source_provider=self.source_provider or "",
            target_provider=self.target_provider or "",
            error_message=self.error_message,
            copied_file_url=self.copied_file_url,
            attempts=self.attempts,
        ).normalized()


__all__ = ["SnapshotModel", "TransferJobSnapshotRow"]
