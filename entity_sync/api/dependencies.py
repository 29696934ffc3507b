"""API dependencies."""

from fastapi import HTTPException, Request, status
import logging

from entity_sync.core.container import SyncContainer
from entity_sync.core.exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    EntitySyncError,
    UnknownSyncError,
)
from entity_sync.models import SyncDefinition

logger = logging.getLogger(__name__)


def get_container(request: Request) -> SyncContainer:
    """Get the container built on startup."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Synchronization services are not initialized",
        )
    return container


def get_sync_or_404(container: SyncContainer, sync_id: str) -> SyncDefinition:
    try:
        return container.config_manager.get_sync(sync_id)
    except UnknownSyncError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Synchronization {sync_id} not found",
        )


def to_http_exception(error: EntitySyncError) -> HTTPException:
    """Map a synchronization error to the HTTP error returned for it."""
    if isinstance(error, (UnknownSyncError, EntityNotFoundError)):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ConfigurationError):
        status_code = status.HTTP_400_BAD_REQUEST
    else:
        status_code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=status_code, detail=str(error))
