"""Run and lock state of synchronization operations."""

from typing import Optional, Union
import logging

from entity_sync.core.config import get_settings
from entity_sync.core.exceptions import ConfigurationError
from entity_sync.models import Operation, OperationState, RunRecord
from entity_sync.services.config_manager import ConfigManager
from entity_sync.storage import KeyValueStore

logger = logging.getLogger(__name__)

LAST_RUN = "last_run"
CURRENT_RUN = "current_run"
LOCKED = "locked"


class StateManager:
    """Tracks the state of each (synchronization, operation) pair.

    The state of all operations of a synchronization lives in one store
    collection named after the synchronization. The lock is a key of its own
    so that it can be acquired with the store's atomic conditional set.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        store: KeyValueStore,
        collection_prefix: Optional[str] = None,
    ):
        self.config_manager = config_manager
        self.store = store
        self.collection_prefix = collection_prefix or get_settings().state_collection_prefix

    def collection(self, sync_id: str) -> str:
        return f"{self.collection_prefix}.{sync_id}"

    @staticmethod
    def _operation(operation: Union[Operation, str]) -> Operation:
        try:
            return Operation(operation)
        except ValueError as e:
            raise ConfigurationError(f'Unknown operation "{operation}"') from e

    def _key(self, operation: Union[Operation, str], name: str) -> str:
        return f"{self._operation(operation).value}.{name}"

    async def get(self, sync_id: str, operation: Union[Operation, str]) -> OperationState:
        """Get the full state of an operation."""
        return OperationState(
            sync_id=sync_id,
            operation=self._operation(operation).value,
            last_run=await self.get_last_run(sync_id, operation),
            current_run=await self.get_current_run(sync_id, operation),
            locked=await self.is_locked(sync_id, operation),
        )

    async def _get_run(self, sync_id: str, operation, name: str) -> Optional[RunRecord]:
        data = await self.store.get(self.collection(sync_id), self._key(operation, name))
        if not data:
            return None
        return RunRecord(**data)

    async def _set_run(
        self,
        sync_id: str,
        operation,
        name: str,
        run_time: int,
        start_time: Optional[int],
        end_time: Optional[int],
    ) -> None:
        record = RunRecord(run_time=run_time, start_time=start_time, end_time=end_time)
        await self.store.set(
            self.collection(sync_id),
            self._key(operation, name),
            record.model_dump(),
        )

    async def get_last_run(self, sync_id: str, operation: Union[Operation, str]) -> Optional[RunRecord]:
        return await self._get_run(sync_id, operation, LAST_RUN)

    async def set_last_run(
        self,
        sync_id: str,
        operation: Union[Operation, str],
        run_time: int,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> None:
        await self._set_run(sync_id, operation, LAST_RUN, run_time, start_time, end_time)

    async def unset_last_run(self, sync_id: str, operation: Union[Operation, str]) -> None:
        await self.store.delete(self.collection(sync_id), self._key(operation, LAST_RUN))
        logger.info(f"Unset last run of {self._operation(operation).value} for synchronization {sync_id}")

    async def get_current_run(self, sync_id: str, operation: Union[Operation, str]) -> Optional[RunRecord]:
        return await self._get_run(sync_id, operation, CURRENT_RUN)

    async def set_current_run(
        self,
        sync_id: str,
        operation: Union[Operation, str],
        run_time: int,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> None:
        await self._set_run(sync_id, operation, CURRENT_RUN, run_time, start_time, end_time)

    async def unset_current_run(self, sync_id: str, operation: Union[Operation, str]) -> None:
        await self.store.delete(self.collection(sync_id), self._key(operation, CURRENT_RUN))

    async def is_locked(self, sync_id: str, operation: Union[Operation, str]) -> bool:
        return bool(await self.store.get(self.collection(sync_id), self._key(operation, LOCKED)))

    async def lock(self, sync_id: str, operation: Union[Operation, str]) -> None:
        """Lock an operation regardless of its current lock state."""
        await self.store.set(self.collection(sync_id), self._key(operation, LOCKED), True)
        logger.info(f"Locked {self._operation(operation).value} for synchronization {sync_id}")

    async def acquire_lock(self, sync_id: str, operation: Union[Operation, str]) -> bool:
        """Lock an operation unless it is already locked.

        Returns:
            Whether the lock was acquired.
        """
        acquired = await self.store.set_if_not_exists(
            self.collection(sync_id),
            self._key(operation, LOCKED),
            True,
        )
        if acquired:
            logger.debug(f"Acquired lock of {self._operation(operation).value} for synchronization {sync_id}")
        return acquired

    async def unlock(self, sync_id: str, operation: Union[Operation, str]) -> None:
        await self.store.delete(self.collection(sync_id), self._key(operation, LOCKED))
        logger.info(f"Unlocked {self._operation(operation).value} for synchronization {sync_id}")

    def is_managed(self, sync_id: str, operation: Union[Operation, str]) -> bool:
        """Whether the state of the operation is managed by this service."""
        sync = self.config_manager.get_sync(sync_id)
        return sync.operation(operation).state.is_managed
