"""Main FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from entity_sync.core.config import get_settings
from entity_sync.core.container import build_container
from entity_sync.core.database import database
from entity_sync.api import health, operations, state
from entity_sync.utils.logging import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting up entity sync service...")
    logger.info(f"Service: {settings.service_name}")
    logger.info(f"Environment: {settings.environment}")
    if settings.entity_backend == "mongo":
        await database.connect()

    container = build_container(settings)
    app.state.container = container
    if settings.process_queues:
        await container.queue_service.start_processing()

    yield

    # Shutdown
    logger.info("Shutting down entity sync service...")
    await container.close()
    if settings.entity_backend == "mongo":
        await database.disconnect()


# Create FastAPI app
app = FastAPI(
    title="Entity Sync Service",
    description="Service for synchronizing local entities with remote resources",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(
    operations.router,
    prefix="/api/v1/syncs",
    tags=["operations"]
)
app.include_router(
    state.router,
    prefix="/api/v1/syncs",
    tags=["state"]
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "entity_sync.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
    )
