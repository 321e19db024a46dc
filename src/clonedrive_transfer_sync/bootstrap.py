"""Application bootstrap/wiring."""

import logging

from clonedrive_transfer_sync.application.services import (
    TransferJobReconciler,
    TransferSyncService,
)
from clonedrive_transfer_sync.config import Settings
from clonedrive_transfer_sync.infrastructure.events import (
    ReconnectBackoff,
    SseTransferEventSource,
)
from clonedrive_transfer_sync.infrastructure.snapshots import HttpTransferJobSnapshotFetcher
from clonedrive_transfer_sync.infrastructure.store import InMemoryTransferJobStore

logger = logging.getLogger(__name__)


def _build_snapshot_fetcher(settings: Settings) -> HttpTransferJobSnapshotFetcher:
    return HttpTransferJobSnapshotFetcher(
        base_url=settings.api_base_url,
        snapshot_path=settings.snapshot_path,
        timeout_seconds=settings.http_timeout_seconds,
        retry_attempts=settings.snapshot_retry_attempts,
    )


def _build_event_source(settings: Settings) -> SseTransferEventSource:
    return SseTransferEventSource(
        base_url=settings.api_base_url,
        events_path=settings.events_path,
        connect_timeout_seconds=settings.http_timeout_seconds,
        read_timeout_seconds=settings.stream_read_timeout_seconds,
    )


def build_transfer_sync_service(settings: Settings) -> TransferSyncService:
    """Compose service graph."""

    store = InMemoryTransferJobStore(
        accept_terminal_snapshot_rows=settings.accept_terminal_snapshot_rows,
    )
    reconciler = TransferJobReconciler(
        store,
        monotonic_progress=settings.monotonic_progress,
    )
    snapshot_fetcher = _build_snapshot_fetcher(settings)
    event_source = _build_event_source(settings)
    logger.info(
        "Syncing transfer jobs from '%s' and '%s'.",
        snapshot_fetcher.url,
        event_source.url,
    )

    return TransferSyncService(
        store=store,
        reconciler=reconciler,
        snapshot_fetcher=snapshot_fetcher,
        event_source=event_source,
        backoff=ReconnectBackoff(
            base_delay_seconds=settings.reconnect_base_delay_seconds,
            max_delay_seconds=settings.reconnect_max_delay_seconds,
            max_attempts=settings.reconnect_max_attempts,
        ),
        snapshot_refresh_seconds=settings.snapshot_refresh_seconds,
    )


__all__ = ["build_transfer_sync_service"]
