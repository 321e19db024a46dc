"""Application services public API."""

from clonedrive_transfer_sync.application.services.reconciler import TransferJobReconciler
from clonedrive_transfer_sync.application.services.transfer_sync_service import (
    TransferSyncService,
    ViewListener,
)
from clonedrive_transfer_sync.application.services.update_channel import TransferUpdateChannel

__all__ = [
    "TransferJobReconciler",
    "TransferSyncService",
    "TransferUpdateChannel",
    "ViewListener",
]
