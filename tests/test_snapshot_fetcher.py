from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import httpx
import pytest

from clonedrive_transfer_sync.domain.auth import AuthContext
from clonedrive_transfer_sync.domain.errors import SnapshotFetchError, SnapshotUnauthorizedError
from clonedrive_transfer_sync.domain.transfer_jobs import TransferJobStatus
from clonedrive_transfer_sync.infrastructure.snapshots import HttpTransferJobSnapshotFetcher

_ROWS = [
    {
        "id": "op-1",
        "fileName": "report.pdf",
        "status": "in_progress",
        "progressPct": 35,
        "sourceProvider": "google",
        "destProvider": "onedrive",
        "errorMessage": None,
        "copiedFileUrl": None,
        "createdAt": "2026-03-01T12:00:00Z",
        "attempts": 1,
    },
    {
        "id": "op-2",
        "fileName": "photo.jpg",
        "status": "completed",
        "progressPct": 100,
        "sourceProvider": "dropbox",
        "destinationProvider": "google",
        "copiedFileUrl": "https://drive.example.com/f/2",
        "createdAt": "2026-03-01T13:00:00Z",
    },
]


def _fetcher(handler, **kwargs: object) -> HttpTransferJobSnapshotFetcher:
    return HttpTransferJobSnapshotFetcher(
        base_url="https://clonedrive.example.com/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_fetch_jobs_maps_rows_and_sends_session() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code=200, json=_ROWS)

    jobs = asyncio.run(
        _fetcher(handler).fetch_jobs(
            AuthContext(access_token="token-1", cookies={"connect.sid": "s-1"})
        )
    )

    assert len(requests) == 1
    request = requests[0]
    assert request.method == "GET"
    assert str(request.url) == "https://clonedrive.example.com/api/copy-operations"
    assert request.headers["Authorization"] == "Bearer token-1"
    assert "connect.sid=s-1" in request.headers["Cookie"]

    first, second = jobs
    assert first.job_id == "op-1"
    assert first.status is TransferJobStatus.IN_PROGRESS
    assert first.progress == 35
    assert first.target_provider == "onedrive"
    assert first.attempts == 1
    assert first.created_at == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    assert second.target_provider == "google"
    assert second.copied_file_url == "https://drive.example.com/f/2"


def test_fetch_jobs_accepts_wrapped_payload_and_drops_invalid_rows() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=200,
            json={
                "jobs": [
                    {"id": "op-1", "status": "QUEUED"},
                    {"id": "op-2", "status": "paused"},
                    {"status": "queued"},
                ]
            },
        )

    jobs = asyncio.run(_fetcher(handler).fetch_jobs(AuthContext()))

    assert [job.job_id for job in jobs] == ["op-1"]
    assert jobs[0].status is TransferJobStatus.QUEUED
    assert jobs[0].file_name == ""
    assert jobs[0].created_at.tzinfo is not None


def test_fetch_jobs_raises_unauthorized_on_401() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=401, json={"message": "Unauthorized"})

    with pytest.raises(SnapshotUnauthorizedError, match="Unauthorized"):
        asyncio.run(_fetcher(handler).fetch_jobs(AuthContext(access_token="expired")))


def test_fetch_jobs_raises_on_server_error_without_retry() -> None:
    calls = 0

    def handler(_: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(status_code=500, json={"detail": "database down"})

    with pytest.raises(SnapshotFetchError, match="500 database down"):
        asyncio.run(_fetcher(handler).fetch_jobs(AuthContext()))

    assert calls == 1


def test_fetch_jobs_retries_once_on_transport_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(status_code=200, json=_ROWS[:1])

    jobs = asyncio.run(_fetcher(handler).fetch_jobs(AuthContext()))

    assert calls == 2
    assert [job.job_id for job in jobs] == ["op-1"]


def test_fetch_jobs_gives_up_after_retry_budget() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(SnapshotFetchError):
        asyncio.run(_fetcher(handler, retry_attempts=1).fetch_jobs(AuthContext()))

    assert calls == 2


def test_fetch_jobs_rejects_invalid_json() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, text="<html>login</html>")

    with pytest.raises(SnapshotFetchError, match="invalid JSON"):
        asyncio.run(_fetcher(handler).fetch_jobs(AuthContext()))


def test_fetcher_rejects_empty_base_url() -> None:
    with pytest.raises(SnapshotFetchError):
        HttpTransferJobSnapshotFetcher(base_url="  ")
