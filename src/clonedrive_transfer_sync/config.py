"""Application settings."""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = frozenset({"critical", "error", "warning", "info", "debug"})


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "CloneDrive Transfer Sync"
    host: str = "127.0.0.1"
    port: int = 8090
    api_base_url: str = "http://localhost:5000"
    snapshot_path: str = "/api/copy-operations"
    events_path: str = "/api/transfer-jobs/events"
    access_token: str | None = None
    http_timeout_seconds: float = 10.0
    snapshot_retry_attempts: int = 1
    snapshot_refresh_seconds: float | None = None
    stream_read_timeout_seconds: float = 90.0
    reconnect_base_delay_seconds: float = 1.0
    reconnect_max_delay_seconds: float = 30.0
    reconnect_max_attempts: int = 10
    monotonic_progress: bool = False
    accept_terminal_snapshot_rows: bool = False
    log_level: str = "info"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        """Accept log level names in any case."""

        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("access_token", "snapshot_refresh_seconds", mode="before")
    @classmethod
    def empty_as_unset(cls, value: object) -> object:
        """Treat empty env var values as unset."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def validate_sync_settings(self) -> "Settings":
        """Ensure timeouts and reconnect settings are consistent."""

        if not self.api_base_url.strip():
            raise ValueError("CLONEDRIVE_SYNC_API_BASE_URL must not be empty.")
        if self.http_timeout_seconds <= 0:
            raise ValueError("CLONEDRIVE_SYNC_HTTP_TIMEOUT_SECONDS must be > 0.")
        if self.snapshot_retry_attempts not in {0, 1}:
            raise ValueError("CLONEDRIVE_SYNC_SNAPSHOT_RETRY_ATTEMPTS must be 0 or 1.")
        if self.snapshot_refresh_seconds is not None and self.snapshot_refresh_seconds <= 0:
            raise ValueError("CLONEDRIVE_SYNC_SNAPSHOT_REFRESH_SECONDS must be > 0 when set.")
        if self.stream_read_timeout_seconds <= 0:
            raise ValueError("CLONEDRIVE_SYNC_STREAM_READ_TIMEOUT_SECONDS must be > 0.")
        if self.reconnect_base_delay_seconds <= 0:
            raise ValueError("CLONEDRIVE_SYNC_RECONNECT_BASE_DELAY_SECONDS must be > 0.")
        if self.reconnect_max_delay_seconds < self.reconnect_base_delay_seconds:
            raise ValueError(
                "CLONEDRIVE_SYNC_RECONNECT_MAX_DELAY_SECONDS must be >= "
                "CLONEDRIVE_SYNC_RECONNECT_BASE_DELAY_SECONDS."
            )
        if self.reconnect_max_attempts < 1:
            raise ValueError("CLONEDRIVE_SYNC_RECONNECT_MAX_ATTEMPTS must be >= 1.")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                "CLONEDRIVE_SYNC_LOG_LEVEL must be one of "
                f"{', '.join(sorted(_LOG_LEVELS))}."
            )
        return self

    model_config = SettingsConfigDict(env_prefix="CLONEDRIVE_SYNC_", extra="ignore")


__all__ = ["Settings"]
