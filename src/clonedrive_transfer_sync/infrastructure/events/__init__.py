"""Transfer event stream subscription and reconnect handling."""

from clonedrive_transfer_sync.infrastructure.events.reconnect_backoff import ReconnectBackoff
from clonedrive_transfer_sync.infrastructure.events.sse_transfer_event_source import (
    SseTransferEventSource,
)
from clonedrive_transfer_sync.infrastructure.events.transfer_event_stream_client import (
    TransferEventStreamClient,
)

__all__ = ["ReconnectBackoff", "SseTransferEventSource", "TransferEventStreamClient"]
