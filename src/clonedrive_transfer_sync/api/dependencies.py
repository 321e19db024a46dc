"""Dependency providers for FastAPI routes."""

from functools import lru_cache

from clonedrive_transfer_sync.application.services import TransferSyncService
from clonedrive_transfer_sync.bootstrap import build_transfer_sync_service
from clonedrive_transfer_sync.config import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return singleton settings."""

    return Settings()


@lru_cache(maxsize=1)
def get_transfer_sync_service() -> TransferSyncService:
    """Return singleton service graph."""

    return build_transfer_sync_service(get_settings())


__all__ = ["get_settings", "get_transfer_sync_service"]
