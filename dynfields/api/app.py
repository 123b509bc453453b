"""
Main API application module for dynfields.

This module creates and configures the FastAPI application with all routers
and middleware.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..settings import settings
from ..utils.db_manager import db_manager
from ..utils.logger import logger
from .exception_handlers import setup_exception_handlers
from .routers import owners, personal, templates


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:  # noqa: ARG001
    """
    Application lifespan context manager.

    Creates database tables on startup and disposes the engine on shutdown.
    """
    await db_manager.create_db_and_tables_async()
    logger.info(f"Database initialized ({settings.database_driver.value})")
    logger.info("Application startup complete")

    try:
        yield
    finally:
        # Cleanup database connections on shutdown
        await db_manager.close()
        logger.info("Application shutdown")


# noinspection PyTypeChecker
def create_app(root_path: str = "/") -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        root_path: The root path for the application

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="dynfields",
        description="Dynamic custom fields for user types and users",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        root_path=root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    prefix = settings.api_prefix.rstrip("/")
    app.include_router(templates.router, prefix=f"{prefix}/templates", tags=["Templates"])
    app.include_router(personal.router, prefix=f"{prefix}/personal", tags=["Personal"])
    app.include_router(owners.router, prefix=prefix, tags=["Owners"])

    @app.get(f"{prefix}/health")
    async def health() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok", "version": __version__}

    return app


# Create default application instance
app = create_app(root_path=settings.root_url)
