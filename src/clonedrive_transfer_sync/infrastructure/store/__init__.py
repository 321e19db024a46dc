"""Job store implementations."""

from clonedrive_transfer_sync.infrastructure.store.in_memory_transfer_job_store import (
    InMemoryTransferJobStore,
)

__all__ = ["InMemoryTransferJobStore"]
