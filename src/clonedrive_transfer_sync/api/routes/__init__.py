"""Route modules public API."""

from clonedrive_transfer_sync.api.routes.health import router as health_router
from clonedrive_transfer_sync.api.routes.transfer_jobs import router as transfer_jobs_router

__all__ = ["health_router", "transfer_jobs_router"]
