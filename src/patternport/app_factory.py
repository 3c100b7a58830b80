from fastapi import FastAPI

from . import __version__
from .api import io, patterns
from .core.config import settings
from .services import io_service


def create_app() -> FastAPI:
    """Factory to create the FastAPI application instance."""
    # Importing io_service registers the workspace auto-import hook
    _io_service_initialized = io_service

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Block pattern authoring server with theme file import and export.",
        version=__version__,
    )

    # Health check at root
    @app.get("/", tags=["Root"])
    def read_root():
        """Provides a simple health check response."""
        return {
            "status": "ok",
            "project_name": settings.PROJECT_NAME,
            "mode": settings.MODE,
        }

    app.include_router(patterns.router)
    app.include_router(io.router)

    return app
