"""Typed transfer job events delivered by the push stream."""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from clonedrive_transfer_sync.domain.errors import TransferEventPayloadError


class TransferEventKind(StrEnum):
    """Named events emitted by the transfer event stream."""

    CONNECTED = "connected"
    HEARTBEAT = "heartbeat"
    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    RETRY = "retry"


class TransferEventModel(BaseModel):
    """Base model for stream payloads; unknown wire fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class JobEventModel(TransferEventModel):
    """Payload fields shared by every job-scoped event."""

    job_id: str = Field(alias="jobId", min_length=1)


class ConnectedEvent(TransferEventModel):
    """Subscription acknowledged by the server."""

    kind: Literal["connected"] = "connected"


class HeartbeatEvent(TransferEventModel):
    """Keep-alive sent periodically by the server."""

    kind: Literal["heartbeat"] = "heartbeat"


class ProgressEvent(JobEventModel):
    """Job is running and reports a completion percentage."""

    kind: Literal["progress"] = "progress"
    progress_pct: int = Field(alias="progressPct")
    file_name: str | None = Field(default=None, alias="fileName")

    @field_validator("progress_pct", mode="before")
    @classmethod
    def round_fractional_percent(cls, value: object) -> object:
        """Accept fractional percentages from workers that report floats."""

        if isinstance(value, float):
            return round(value)
        return value


class CompletedEvent(JobEventModel):
    """Job finished and produced a copy at `copied_file_url`."""

    kind: Literal["completed"] = "completed"
    copied_file_url: str | None = Field(default=None, alias="copiedFileUrl")
    file_name: str | None = Field(default=None, alias="fileName")


class FailedEvent(JobEventModel):
    """Job failed on the worker."""

    kind: Literal["failed"] = "failed"
    error_message: str | None = Field(
        default=None,
        alias="errorMessage",
        validation_alias=AliasChoices("errorMessage", "error"),
    )


class CancelledEvent(JobEventModel):
    """Job was cancelled."""

    kind: Literal["cancelled"] = "cancelled"


class RetryEvent(JobEventModel):
    """Worker scheduled another attempt for a failed job."""

    kind: Literal["retry"] = "retry"
    attempts: int | None = Field(default=None, ge=0)


TransferEvent = Annotated[
    ConnectedEvent
    | HeartbeatEvent
    | ProgressEvent
    | CompletedEvent
    | FailedEvent
    | CancelledEvent
    | RetryEvent,
    Field(discriminator="kind"),
]

JobEvent = ProgressEvent | CompletedEvent | FailedEvent | CancelledEvent | RetryEvent

_TRANSFER_EVENT_ADAPTER: TypeAdapter[TransferEvent] = TypeAdapter(TransferEvent)
_KNOWN_EVENT_KINDS = frozenset(TransferEventKind)


def parse_transfer_event(event_name: str, data: str) -> TransferEvent | None:
    """Validate one named stream event.

    Returns `None` for event names this client does not handle. Raises
    `TransferEventPayloadError` when a known event carries a payload that is not
    a JSON object or fails validation.
    """

    name = event_name.strip().lower()
    if name not in _KNOWN_EVENT_KINDS:
        return None

    raw = data.strip()
    if not raw:
        payload: object = {}
    else:
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise TransferEventPayloadError(f"Event '{name}' carries invalid JSON.") from exc
    if not isinstance(payload, dict):
        raise TransferEventPayloadError(f"Event '{name}' payload must be a JSON object.")

    try:
        return _TRANSFER_EVENT_ADAPTER.validate_python({**payload, "kind": name})
    except ValidationError as exc:
        raise TransferEventPayloadError(
            f"Event '{name}' payload failed validation with "
            f"{exc.error_count()} error(s)."
        ) from exc


__all__ = [
    "CancelledEvent",
    "CompletedEvent",
    "ConnectedEvent",
    "FailedEvent",
    "HeartbeatEvent",
    "JobEvent",
    "ProgressEvent",
    "RetryEvent",
    "TransferEvent",
    "TransferEventKind",
    "parse_transfer_event",
]
