"""Top-level API router composition."""

from fastapi import APIRouter

from clonedrive_transfer_sync.api.routes import health_router, transfer_jobs_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(transfer_jobs_router)

__all__ = ["api_router"]
