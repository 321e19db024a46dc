"""Monitoring API public surface."""

from clonedrive_transfer_sync.api.router import api_router

__all__ = ["api_router"]
