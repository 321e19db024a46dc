"""FastAPI application entrypoint."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from clonedrive_transfer_sync import __version__
from clonedrive_transfer_sync.api import api_router
from clonedrive_transfer_sync.api.dependencies import get_settings, get_transfer_sync_service
from clonedrive_transfer_sync.domain.auth import AuthContext


def create_app() -> FastAPI:
    """Build FastAPI application."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        """Start transfer sync for the configured session and stop it on shutdown."""

        settings = get_settings()
        service = get_transfer_sync_service()
        await service.start(AuthContext(access_token=settings.access_token))
        try:
            yield
        finally:
            await service.stop()

    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    """Run local development server."""

    settings = get_settings()
    uvicorn.run(
        "clonedrive_transfer_sync.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        reload=False,
    )


__all__ = ["app", "create_app", "run"]
