"""HTTP client for the authoritative transfer job listing."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from clonedrive_transfer_sync.domain.auth import AuthContext
from clonedrive_transfer_sync.domain.errors import (
    SnapshotFetchError,
    SnapshotUnauthorizedError,
)
from clonedrive_transfer_sync.domain.ports import TransferSnapshotFetcher
from clonedrive_transfer_sync.domain.snapshot_models import TransferJobSnapshotRow
from clonedrive_transfer_sync.domain.transfer_jobs import TransferJob

logger = logging.getLogger(__name__)


class HttpTransferJobSnapshotFetcher(TransferSnapshotFetcher):
    """Fetch the job listing visible to the current session."""

    def __init__(
        self,
        base_url: str,
        snapshot_path: str = "/api/copy-operations",
        timeout_seconds: float = 10.0,
        retry_attempts: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{self._normalize_base_url(base_url)}{self._normalize_path(snapshot_path)}"
        self._timeout_seconds = timeout_seconds
        self._retry_attempts = max(retry_attempts, 0)
        self._transport = transport

    @property
    def url(self) -> str:
        """Listing endpoint this fetcher calls."""

        return self._url

    async def fetch_jobs(self, auth: AuthContext) -> list[TransferJob]:
        """Call the listing endpoint and map rows to canonical jobs.

        Transport failures (connect errors, timeouts) are retried up to
        `retry_attempts` times. HTTP error statuses are never retried; a 401
        raises `SnapshotUnauthorizedError`.
        """

        response = await self._get_with_retry(auth)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise SnapshotUnauthorizedError(
                f"GET {self._url} rejected the session: 401 {self._detail_from_response(response)}"
            )
        self._ensure_success(response)

        fetched_at = datetime.now(tz=UTC)
        return [row.to_job(fetched_at) for row in self._parse_rows(response)]

    async def _get_with_retry(self, auth: AuthContext) -> httpx.Response:
        attempt = 0
        while True:
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout_seconds,
                    transport=self._transport,
                    cookies=dict(auth.cookies),
                ) as http_client:
                    return await http_client.get(self._url, headers=auth.headers())
            except httpx.TransportError as exc:
                if attempt >= self._retry_attempts:
                    raise SnapshotFetchError(f"GET {self._url} failed: {exc}") from exc
                attempt += 1
                logger.warning(
                    "Snapshot fetch from '%s' failed (%s); retrying (attempt %s of %s).",
                    self._url,
                    exc,
                    attempt,
                    self._retry_attempts,
                )
            except httpx.HTTPError as exc:
                raise SnapshotFetchError(f"GET {self._url} failed: {exc}") from exc

    def _parse_rows(self, response: httpx.Response) -> list[TransferJobSnapshotRow]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise SnapshotFetchError(f"GET {self._url} returned invalid JSON.") from exc

        raw_rows = self._rows_from_payload(payload)
        rows: list[TransferJobSnapshotRow] = []
        for index, raw_row in enumerate(raw_rows):
            try:
                rows.append(TransferJobSnapshotRow.model_validate(raw_row))
            except ValidationError as exc:
                logger.warning(
                    "Dropping invalid job row %s from '%s': %s validation error(s).",
                    index,
                    self._url,
                    exc.error_count(),
                )
        return rows

    def _rows_from_payload(self, payload: Any) -> list[Any]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            jobs = payload.get("jobs")
            if isinstance(jobs, list):
                return jobs
        raise SnapshotFetchError(
            f"GET {self._url} returned neither a job list nor an object with a 'jobs' list."
        )

    def _ensure_success(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = self._detail_from_response(response)
        raise SnapshotFetchError(
            f"{response.request.method} {response.request.url} failed: "
            f"{response.status_code} {message}"
        )

    def _detail_from_response(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            text = response.text.strip()
            return text or "<no response body>"

        if isinstance(payload, dict):
            for key in ("message", "detail"):
                detail = payload.get(key)
                if isinstance(detail, str):
                    return detail
        return str(payload)

    def _normalize_base_url(self, base_url: str) -> str:
        normalized = base_url.strip().rstrip("/")
        if not normalized:
            raise SnapshotFetchError("API base URL cannot be empty.")
        return normalized

    def _normalize_path(self, path: str) -> str:
        normalized = path.strip()
        if not normalized.startswith("/"):
            normalized = f"/{normalized}"
        return normalized


__all__ = ["HttpTransferJobSnapshotFetcher"]
