"""Operation state API endpoints."""

from fastapi import APIRouter, status, Depends
import logging

from entity_sync.api.dependencies import get_container, get_sync_or_404
from entity_sync.core.container import SyncContainer
from entity_sync.models import Operation
from entity_sync.schemas.operations import OperationStateResponse

logger = logging.getLogger(__name__)
router = APIRouter()


async def _state_response(container: SyncContainer, sync_id: str, operation: Operation) -> OperationStateResponse:
    sync = get_sync_or_404(container, sync_id)
    state = await container.state_manager.get(sync_id, operation)
    return OperationStateResponse(
        sync_id=sync_id,
        operation=operation.value,
        managed=sync.operation(operation).state.is_managed,
        locked=state.locked,
        last_run=state.last_run,
        current_run=state.current_run,
    )


@router.get("/{sync_id}/state/{operation}", response_model=OperationStateResponse)
async def get_state(
    sync_id: str,
    operation: Operation,
    container: SyncContainer = Depends(get_container),
):
    """Get the run and lock state of an operation."""
    return await _state_response(container, sync_id, operation)


@router.post("/{sync_id}/state/{operation}/lock", response_model=OperationStateResponse)
async def lock_operation(
    sync_id: str,
    operation: Operation,
    container: SyncContainer = Depends(get_container),
):
    """Lock an operation so that managed runs are cancelled."""
    get_sync_or_404(container, sync_id)
    await container.state_manager.lock(sync_id, operation)
    return await _state_response(container, sync_id, operation)


@router.post("/{sync_id}/state/{operation}/unlock", response_model=OperationStateResponse)
async def unlock_operation(
    sync_id: str,
    operation: Operation,
    container: SyncContainer = Depends(get_container),
):
    """Release the lock of an operation, such as one left by a crashed run."""
    get_sync_or_404(container, sync_id)
    await container.state_manager.unlock(sync_id, operation)
    return await _state_response(container, sync_id, operation)


@router.delete("/{sync_id}/state/{operation}/last-run", status_code=status.HTTP_204_NO_CONTENT)
async def reset_last_run(
    sync_id: str,
    operation: Operation,
    container: SyncContainer = Depends(get_container),
):
    """Forget the last run so that the next managed run starts over."""
    get_sync_or_404(container, sync_id)
    await container.state_manager.unset_last_run(sync_id, operation)
