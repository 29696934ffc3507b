"""Export of local entities to remote resources."""

from typing import Any, Dict, Optional
import logging

from entity_sync.clients import ClientFactory
from entity_sync.core.exceptions import UnsupportedActionError
from entity_sync.events import EventDispatcher, ExportEvents, LocalEntityMappingEvent
from entity_sync.models import (
    EntityMapping,
    EntityMappingAction,
    LocalEntity,
    Operation,
    SyncDefinition,
)
from entity_sync.services.config_manager import ConfigManager
from entity_sync.services.entity_manager_base import EntityManagerBase
from entity_sync.services.export_field_manager import ExportFieldManager
from entity_sync.services.queue_service import EXPORT_LOCAL_ENTITY_QUEUE, QueueService
from entity_sync.services.state_manager import StateManager

logger = logging.getLogger(__name__)


class ExportEntityManager(EntityManagerBase):
    """Exports local entities to their remote counterparts."""

    def __init__(
        self,
        config_manager: ConfigManager,
        client_factory: ClientFactory,
        dispatcher: EventDispatcher,
        field_manager: ExportFieldManager,
        state_manager: StateManager,
        queue_service: QueueService,
    ):
        self.config_manager = config_manager
        self.client_factory = client_factory
        self.dispatcher = dispatcher
        self.field_manager = field_manager
        self.state_manager = state_manager
        self.queue_service = queue_service

    async def export_local_entity(
        self,
        sync_id: str,
        local_entity: LocalEntity,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Create or update the remote entity of a local entity.

        Options:
            context: Passed to the lifecycle events.

        Returns:
            The outcome of the export: the `action` taken, the
            `entity_mapping` and the client `response`. None when the export
            did not run.
        """
        sync = self.config_manager.get_sync(sync_id)
        operation = Operation.EXPORT_ENTITY
        if not self.operation_supported(sync, operation):
            return None

        options = options or {}
        context = {**(options.get("context") or {}), "local_entity": local_entity}
        if await self.pre_initiate(operation, context, sync):
            return None

        try:
            await self.initiate(operation, context, sync)
            data = await self.create_or_update(local_entity, sync)
            await self.terminate(operation, context, sync, data or {})
        finally:
            await self.post_terminate(operation, context, sync)

        return data

    async def create_or_update(
        self,
        local_entity: LocalEntity,
        sync: SyncDefinition,
    ) -> Optional[Dict[str, Any]]:
        entity_mapping = await self.local_entity_mapping(local_entity, sync)
        if entity_mapping is None:
            return None

        action = entity_mapping.action
        # An export resolves to a create or an update depending on whether the
        # remote entity is known.
        if action == EntityMappingAction.EXPORT:
            action = EntityMappingAction.CREATE if entity_mapping.id is None else EntityMappingAction.UPDATE

        data: Dict[str, Any] = {"action": action, "entity_mapping": entity_mapping}
        if action == EntityMappingAction.SKIP:
            return data
        if action == EntityMappingAction.CREATE:
            data["response"] = await self.create(local_entity, sync, entity_mapping)
        elif action == EntityMappingAction.UPDATE:
            data["response"] = await self.update(local_entity, sync, entity_mapping)
        else:
            raise UnsupportedActionError(action.value)
        return data

    async def create(
        self,
        local_entity: LocalEntity,
        sync: SyncDefinition,
        entity_mapping: EntityMapping,
    ) -> Any:
        if not sync.operation(Operation.EXPORT_ENTITY).create_entities:
            logger.info(f"Creating remote entities is disabled for synchronization {sync.id}")
            return None

        remote_fields = await self.field_manager.export_fields(local_entity, None, sync)
        client = self._client(entity_mapping, sync)
        logger.debug(f"Creating remote entity for synchronization {sync.id}")
        return await client.create(remote_fields)

    async def update(
        self,
        local_entity: LocalEntity,
        sync: SyncDefinition,
        entity_mapping: EntityMapping,
    ) -> Any:
        if not sync.operation(Operation.EXPORT_ENTITY).update_entities:
            logger.info(f"Updating remote entities is disabled for synchronization {sync.id}")
            return None

        remote_fields = await self.field_manager.export_fields(local_entity, entity_mapping.id, sync)
        client = self._client(entity_mapping, sync)
        logger.debug(f"Updating remote entity {entity_mapping.id} for synchronization {sync.id}")
        return await client.update(entity_mapping.id, remote_fields)

    def _client(self, entity_mapping: EntityMapping, sync: SyncDefinition):
        binding = entity_mapping.client or sync.remote_resource.client
        return self.client_factory.get_by_client_config(binding, sync)

    async def local_entity_mapping(self, local_entity: LocalEntity, sync: SyncDefinition) -> Optional[EntityMapping]:
        """Resolve the entity mapping through the entity mapping subscribers."""
        event = LocalEntityMappingEvent(local_entity=local_entity, sync=sync)
        await self.dispatcher.dispatch(ExportEvents.LOCAL_ENTITY_MAPPING, event)
        return event.entity_mapping

    async def queue_export_local_entity_all_syncs(
        self,
        entity: LocalEntity,
        options: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Queue an export of the entity for every synchronization exporting it.

        When the context carries the `original_entity` the entity was saved
        over, managed synchronizations are skipped unless an exported field
        changed, and when the remote changed time moved forward, which means
        the save came from an import.

        Returns:
            The number of exports queued.
        """
        syncs = self.config_manager.get_syncs({
            "local_entity": {"type_id": entity.entity_type_id, "bundle": entity.bundle},
            "operation": {"id": Operation.EXPORT_ENTITY.value, "status": True},
        })
        if not syncs:
            return 0

        context = (options or {}).get("context") or {}
        original_entity: Optional[LocalEntity] = context.get("original_entity")
        changed_names = []
        if original_entity is not None:
            changed_names = self.field_manager.get_changed_names(entity, original_entity)

        queued = 0
        for sync in syncs:
            is_managed = self.state_manager.is_managed(sync.id, Operation.EXPORT_ENTITY)
            if is_managed and original_entity is not None:
                if not changed_names:
                    continue
                exportable_names = self.field_manager.get_exportable_changed_names(
                    entity,
                    original_entity,
                    sync.field_mapping,
                    changed_names=changed_names,
                )
                if not exportable_names:
                    continue
                if self._changed_by_import(entity, original_entity, sync):
                    continue

            await self.queue_service.create_item(EXPORT_LOCAL_ENTITY_QUEUE, {
                "sync_id": sync.id,
                "entity_type_id": entity.entity_type_id,
                "entity_id": entity.id,
            })
            queued += 1

        return queued

    @staticmethod
    def _changed_by_import(entity: LocalEntity, original_entity: LocalEntity, sync: SyncDefinition) -> bool:
        field_name = sync.local_entity.remote_changed_field
        if not entity.has_field(field_name) or not original_entity.has_field(field_name):
            return False
        original_changed = original_entity.get(field_name).value
        changed = entity.get(field_name).value
        if original_changed is None or changed is None:
            return changed is not None and original_changed is None
        return original_changed < changed
