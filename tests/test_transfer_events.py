from __future__ import annotations

import pytest

from clonedrive_transfer_sync.domain.errors import TransferEventPayloadError
from clonedrive_transfer_sync.domain.events import (
    CompletedEvent,
    ConnectedEvent,
    FailedEvent,
    HeartbeatEvent,
    ProgressEvent,
    RetryEvent,
    parse_transfer_event,
)


def test_parse_progress_event_maps_wire_fields() -> None:
    event = parse_transfer_event(
        "progress",
        '{"jobId": "J1", "progressPct": 42.6, "fileName": "photo.jpg", "extra": true}',
    )

    assert isinstance(event, ProgressEvent)
    assert event.job_id == "J1"
    assert event.progress_pct == 43
    assert event.file_name == "photo.jpg"


def test_parse_completed_event() -> None:
    event = parse_transfer_event(
        "completed",
        '{"jobId": "J1", "copiedFileUrl": "https://drive.example.com/f/1"}',
    )

    assert isinstance(event, CompletedEvent)
    assert event.copied_file_url == "https://drive.example.com/f/1"


@pytest.mark.parametrize("field", ["errorMessage", "error"])
def test_parse_failed_event_accepts_both_error_fields(field: str) -> None:
    event = parse_transfer_event("failed", f'{{"jobId": "J1", "{field}": "quota exceeded"}}')

    assert isinstance(event, FailedEvent)
    assert event.error_message == "quota exceeded"


def test_parse_retry_event() -> None:
    event = parse_transfer_event("retry", '{"jobId": "J1", "attempts": 3}')

    assert isinstance(event, RetryEvent)
    assert event.attempts == 3


def test_parse_connection_events() -> None:
    connected = parse_transfer_event(
        "connected",
        '{"userId": "u-1", "timestamp": "2026-03-01T12:00:00Z"}',
    )
    heartbeat = parse_transfer_event("heartbeat", "")

    assert isinstance(connected, ConnectedEvent)
    assert isinstance(heartbeat, HeartbeatEvent)


def test_unknown_event_name_is_ignored() -> None:
    assert parse_transfer_event("paused", '{"jobId": "J1"}') is None
    assert parse_transfer_event("message", "hello") is None


@pytest.mark.parametrize(
    ("name", "data"),
    [
        ("progress", "{not json"),
        ("progress", "[1, 2]"),
        ("progress", '{"progressPct": 10}'),
        ("progress", '{"jobId": "", "progressPct": 10}'),
        ("retry", '{"jobId": "J1", "attempts": -1}'),
        ("cancelled", "{}"),
    ],
)
def test_malformed_payload_raises(name: str, data: str) -> None:
    with pytest.raises(TransferEventPayloadError):
        parse_transfer_event(name, data)
