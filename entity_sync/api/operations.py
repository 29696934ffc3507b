"""Synchronization operation API endpoints."""

from fastapi import APIRouter, HTTPException, status, Depends
from typing import List
import logging

from entity_sync.api.dependencies import get_container, get_sync_or_404, to_http_exception
from entity_sync.core.container import SyncContainer
from entity_sync.core.exceptions import EntitySyncError
from entity_sync.models import Operation
from entity_sync.schemas.operations import (
    ExportEntityRequest,
    ExportEntityResponse,
    ImportEntityRequest,
    ImportEntityResponse,
    ImportListRequest,
    ImportListResponse,
    LocalEntityResponse,
    SyncSummary,
)
from entity_sync.services import EXPORT_LOCAL_ENTITY_QUEUE, IMPORT_LIST_QUEUE

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=List[SyncSummary])
async def list_syncs(container: SyncContainer = Depends(get_container)):
    """List the configured synchronizations."""
    return [
        SyncSummary(
            id=sync.id,
            label=sync.label,
            local_entity_type_id=sync.local_entity.type_id,
            local_entity_bundle=sync.local_entity.bundle,
            remote_resource=sync.remote_resource.name,
            operations={
                operation.value: sync.operation_enabled(operation)
                for operation in Operation
            },
        )
        for sync in container.config_manager.all()
    ]


@router.post("/{sync_id}/import-list", response_model=ImportListResponse)
async def import_list(
    sync_id: str,
    request: ImportListRequest,
    container: SyncContainer = Depends(get_container),
):
    """Import the remote list of a synchronization, now or through the queue."""
    sync = get_sync_or_404(container, sync_id)
    if not sync.operation_enabled(Operation.IMPORT_LIST):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Synchronization {sync_id} does not support importing lists",
        )

    if request.queue:
        await container.queue_service.create_item(IMPORT_LIST_QUEUE, {
            "sync_id": sync_id,
            "filters": request.filters(),
            "options": request.options(),
        })
        return ImportListResponse(sync_id=sync_id, queued=True)

    try:
        await container.import_manager.import_remote_list(
            sync_id,
            request.filters(),
            request.options(),
        )
    except EntitySyncError as e:
        logger.error(f"List import failed for synchronization {sync_id}: {e}")
        raise to_http_exception(e)

    return ImportListResponse(sync_id=sync_id)


@router.post("/{sync_id}/import-entity", response_model=ImportEntityResponse)
async def import_entity(
    sync_id: str,
    request: ImportEntityRequest,
    container: SyncContainer = Depends(get_container),
):
    """Import a single remote entity."""
    get_sync_or_404(container, sync_id)

    try:
        local_entity = await container.import_manager.import_remote_entity(
            sync_id,
            request.remote_id,
            {"context": request.context},
        )
    except EntitySyncError as e:
        logger.error(f"Entity import failed for synchronization {sync_id}: {e}")
        raise to_http_exception(e)

    if local_entity is None:
        return ImportEntityResponse(sync_id=sync_id, imported=False)

    return ImportEntityResponse(
        sync_id=sync_id,
        imported=True,
        local_entity=LocalEntityResponse(
            entity_type_id=local_entity.entity_type_id,
            bundle=local_entity.bundle,
            id=local_entity.id,
            fields=local_entity.to_dict(),
        ),
    )


@router.post("/{sync_id}/export-entity", response_model=ExportEntityResponse)
async def export_entity(
    sync_id: str,
    request: ExportEntityRequest,
    container: SyncContainer = Depends(get_container),
):
    """Export a local entity, now or through the queue."""
    get_sync_or_404(container, sync_id)

    if request.queue:
        await container.queue_service.create_item(EXPORT_LOCAL_ENTITY_QUEUE, {
            "sync_id": sync_id,
            "entity_type_id": request.entity_type_id,
            "entity_id": request.entity_id,
        })
        return ExportEntityResponse(sync_id=sync_id, queued=True)

    try:
        entity = await container.entity_store.load(request.entity_type_id, request.entity_id)
        if entity is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Entity {request.entity_type_id}:{request.entity_id} not found",
            )
        data = await container.export_manager.export_local_entity(sync_id, entity)
    except EntitySyncError as e:
        logger.error(f"Entity export failed for synchronization {sync_id}: {e}")
        raise to_http_exception(e)

    if data is None:
        return ExportEntityResponse(sync_id=sync_id)

    return ExportEntityResponse(
        sync_id=sync_id,
        exported=data.get("response") is not None,
        action=data.get("action"),
        response=data.get("response"),
    )
