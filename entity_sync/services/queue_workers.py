"""Workers processing the synchronization queues."""

from typing import Any, Dict
import logging

from entity_sync.core.exceptions import EntityNotFoundError
from entity_sync.services.export_entity_manager import ExportEntityManager
from entity_sync.services.import_entity_manager import ImportEntityManager
from entity_sync.storage import EntityStore

logger = logging.getLogger(__name__)


def _validate_data(data: Any) -> None:
    if not isinstance(data, dict):
        raise ValueError(
            f"Queue item data should be a dictionary, {type(data).__name__} given."
        )
    if not data.get("sync_id"):
        raise ValueError("The ID of the synchronization must be given.")


class ImportListWorker:
    """Imports a remote list per queue item.

    Items carry the `sync_id` and optionally the `filters` and `options` of
    the import.
    """

    def __init__(self, manager: ImportEntityManager):
        self.manager = manager

    async def process_item(self, data: Dict[str, Any]) -> None:
        _validate_data(data)
        await self.manager.import_remote_list(
            data["sync_id"],
            data.get("filters") or {},
            data.get("options") or {},
        )


class ExportLocalEntityWorker:
    """Exports a local entity per queue item.

    Items carry the `sync_id`, and the `entity_type_id` and `entity_id` of the
    local entity.
    """

    def __init__(self, manager: ExportEntityManager, entity_store: EntityStore):
        self.manager = manager
        self.entity_store = entity_store

    async def process_item(self, data: Dict[str, Any]) -> None:
        _validate_data(data)
        if not data.get("entity_type_id"):
            raise ValueError("The type ID of the entity being exported must be given.")
        if data.get("entity_id") is None:
            raise ValueError("The ID of the entity being exported must be given.")

        entity = await self.entity_store.load(data["entity_type_id"], data["entity_id"])
        if entity is None:
            raise EntityNotFoundError(
                f'No "{data["entity_type_id"]}" entity with ID "{data["entity_id"]}" found to export.'
            )

        await self.manager.export_local_entity(data["sync_id"], entity)
