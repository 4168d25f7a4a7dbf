"""FastAPI application factory.

Main entry point for the satprep Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from satprep import __version__
from satprep.db.database import init_db
from satprep.web.routes import attempts_router, health_router, users_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    init_db()
    logger.info("api_startup", version=__version__)
    yield
    # Shutdown (nothing to do for now)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="SAT Practice Attempts API",
        description="Attempt lifecycle, quotas, scoring and rewards",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(attempts_router)
    app.include_router(users_router)

    return app


# Default app instance for uvicorn
app = create_app()
