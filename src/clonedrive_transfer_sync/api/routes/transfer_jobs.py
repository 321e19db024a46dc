"""Monitoring routes exposing the synchronized transfer job view."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException
from sse_starlette.sse import EventSourceResponse

from clonedrive_transfer_sync.api.dependencies import get_transfer_sync_service
from clonedrive_transfer_sync.application.services import TransferSyncService
from clonedrive_transfer_sync.domain.errors import (
    SnapshotFetchError,
    SnapshotUnauthorizedError,
    TransferSyncStateError,
)
from clonedrive_transfer_sync.domain.monitoring_models import (
    ClearTerminalResponse,
    TransferJobListResponse,
    TransferSyncStatusResponse,
)
from clonedrive_transfer_sync.domain.sync_state import TransferSyncView

router = APIRouter(prefix="/transfer-jobs", tags=["transfer jobs"])

_VIEW_QUEUE_SIZE = 16


def _raise_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, SnapshotUnauthorizedError):
        raise HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, SnapshotFetchError):
        raise HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, TransferSyncStateError):
        raise HTTPException(status_code=409, detail=str(exc))
    raise HTTPException(status_code=500, detail="Unexpected transfer sync error")


@router.get("", response_model=TransferJobListResponse, response_model_by_alias=True)
async def list_transfer_jobs(
    service: TransferSyncService = Depends(get_transfer_sync_service),
) -> TransferJobListResponse:
    """List merged jobs, newest first."""

    return TransferJobListResponse.from_view(service.view())


@router.get("/status", response_model=TransferSyncStatusResponse, response_model_by_alias=True)
async def get_transfer_sync_status(
    service: TransferSyncService = Depends(get_transfer_sync_service),
) -> TransferSyncStatusResponse:
    """Connection state and job counters."""

    return TransferSyncStatusResponse.from_view(service.view())


@router.post(
    "/clear-terminal",
    response_model=ClearTerminalResponse,
    response_model_by_alias=True,
)
async def clear_terminal_transfer_jobs(
    service: TransferSyncService = Depends(get_transfer_sync_service),
) -> ClearTerminalResponse:
    """Drop completed, failed and cancelled jobs."""

    try:
        removed = await service.clear_terminal()
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return ClearTerminalResponse(removed_count=removed, active_count=service.active_count())


@router.post("/refresh", response_model=TransferSyncStatusResponse, response_model_by_alias=True)
async def refresh_transfer_jobs(
    service: TransferSyncService = Depends(get_transfer_sync_service),
) -> TransferSyncStatusResponse:
    """Fetch and merge a snapshot now."""

    try:
        await service.refresh()
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return TransferSyncStatusResponse.from_view(service.view())


@router.post(
    "/reconnect",
    response_model=TransferSyncStatusResponse,
    response_model_by_alias=True,
    status_code=202,
)
async def reconnect_transfer_events(
    service: TransferSyncService = Depends(get_transfer_sync_service),
) -> TransferSyncStatusResponse:
    """Open a fresh event stream subscription."""

    try:
        await service.reconnect()
    except Exception as exc:  # noqa: BLE001
        _raise_http_exception(exc)
    return TransferSyncStatusResponse.from_view(service.view())


async def view_events(
    service: TransferSyncService,
    *,
    queue_size: int = _VIEW_QUEUE_SIZE,
) -> AsyncIterator[dict[str, str]]:
    """Yield the current view, then one event per later change.

    Views wait in a bounded per-client buffer. When it is full the oldest
    view is dropped.
    """

    views: asyncio.Queue[TransferSyncView] = asyncio.Queue(maxsize=queue_size)

    def _enqueue(view: TransferSyncView) -> None:
        if views.full():
            views.get_nowait()
        views.put_nowait(view)

    unsubscribe = service.subscribe(_enqueue)
    try:
        view = service.view()
        while True:
            payload = TransferJobListResponse.from_view(view)
            yield {
                "event": "transfer-jobs",
                "id": str(view.revision),
                "data": payload.model_dump_json(by_alias=True),
            }
            view = await views.get()
    finally:
        unsubscribe()


@router.get("/events")
async def transfer_job_events(
    service: TransferSyncService = Depends(get_transfer_sync_service),
) -> EventSourceResponse:
    """Stream the merged job view after every change."""

    return EventSourceResponse(view_events(service))


__all__ = ["router", "view_events"]
