"""Health check endpoints."""

from fastapi import APIRouter, Request
from datetime import datetime

from entity_sync.core.config import get_settings
from entity_sync.core.database import database
from entity_sync.storage import RedisKeyValueStore

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "environment": settings.environment,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health_check(request: Request):
    """Detailed health check with storage connectivity."""
    health_status = {
        "status": "healthy",
        "service": settings.service_name,
        "environment": settings.environment,
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "database": {"status": "unknown"},
            "redis": {"status": "unknown"},
        },
    }
    container = getattr(request.app.state, "container", None)

    # Check MongoDB
    if settings.entity_backend != "mongo":
        health_status["checks"]["database"]["status"] = "not_configured"
    else:
        try:
            if database.client:
                await database.client.admin.command("ping")
                health_status["checks"]["database"]["status"] = "healthy"
            else:
                health_status["checks"]["database"]["status"] = "disconnected"
                health_status["status"] = "degraded"
        except Exception as e:
            health_status["checks"]["database"]["status"] = "unhealthy"
            health_status["checks"]["database"]["error"] = str(e)
            health_status["status"] = "unhealthy"

    # Check Redis
    state_store = container.state_store if container else None
    if not isinstance(state_store, RedisKeyValueStore):
        health_status["checks"]["redis"]["status"] = "not_configured"
    else:
        try:
            await state_store.redis_client.ping()
            health_status["checks"]["redis"]["status"] = "healthy"
        except Exception as e:
            health_status["checks"]["redis"]["status"] = "unhealthy"
            health_status["checks"]["redis"]["error"] = str(e)
            health_status["status"] = "unhealthy"

    if container:
        health_status["synchronizations"] = len(container.config_manager.all())

    return health_status
