"""Server-Sent Events subscription to the transfer job event stream."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator

import httpx
from httpx_sse import SSEError, ServerSentEvent, aconnect_sse

from clonedrive_transfer_sync.domain.auth import AuthContext
from clonedrive_transfer_sync.domain.errors import (
    EventStreamError,
    EventStreamUnauthorizedError,
    TransferEventPayloadError,
)
from clonedrive_transfer_sync.domain.events import TransferEvent, parse_transfer_event
from clonedrive_transfer_sync.domain.ports import TransferEventSource

logger = logging.getLogger(__name__)


class SseTransferEventSource(TransferEventSource):
    """Open one `text/event-stream` subscription per `stream()` call."""

    def __init__(
        self,
        base_url: str,
        events_path: str = "/api/transfer-jobs/events",
        connect_timeout_seconds: float = 10.0,
        read_timeout_seconds: float | None = 90.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        clean_base = base_url.strip().rstrip("/")
        if not clean_base:
            raise EventStreamError("API base URL cannot be empty.")
        path = events_path.strip()
        if not path.startswith("/"):
            path = f"/{path}"
        self._url = f"{clean_base}{path}"
        self._timeout = httpx.Timeout(
            connect_timeout_seconds,
            read=read_timeout_seconds,
        )
        self._transport = transport

    @property
    def url(self) -> str:
        """Event stream endpoint this source subscribes to."""

        return self._url

    async def stream(self, auth: AuthContext) -> AsyncGenerator[TransferEvent, None]:
        """Yield validated events until the server closes the stream.

        Malformed payloads and unknown event names are logged and skipped.
        Closing or cancelling the iterator closes the HTTP response.
        """

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                cookies=dict(auth.cookies),
            ) as http_client:
                async with aconnect_sse(
                    http_client,
                    "GET",
                    self._url,
                    headers=auth.headers(),
                ) as event_source:
                    self._ensure_subscribed(event_source.response)
                    async for sse in event_source.aiter_sse():
                        event = self._parse(sse)
                        if event is not None:
                            yield event
        except SSEError as exc:
            raise EventStreamError(f"GET {self._url} is not an event stream: {exc}") from exc
        except httpx.HTTPError as exc:
            raise EventStreamError(f"GET {self._url} failed: {exc}") from exc

    def _ensure_subscribed(self, response: httpx.Response) -> None:
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise EventStreamUnauthorizedError(f"GET {self._url} rejected the session: 401")
        if not response.is_success:
            raise EventStreamError(f"GET {self._url} failed: {response.status_code}")

    def _parse(self, sse: ServerSentEvent) -> TransferEvent | None:
        try:
            event = parse_transfer_event(sse.event, sse.data)
        except TransferEventPayloadError as exc:
            logger.warning("Dropping malformed '%s' event from '%s': %s", sse.event, self._url, exc)
            return None
        if event is None:
            logger.debug("Ignoring unsupported '%s' event from '%s'.", sse.event, self._url)
        return event


__all__ = ["SseTransferEventSource"]
