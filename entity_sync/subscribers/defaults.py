"""Default entity and field mapping providers."""

from typing import Dict, Tuple
import logging

from entity_sync.events import (
    ExportEvents,
    ExportFieldMappingEvent,
    ImportEvents,
    ImportFieldMappingEvent,
    LocalEntityMappingEvent,
    PRIORITY_DEFAULTS,
    RemoteEntityMappingEvent,
)
from entity_sync.models import EntityMapping, EntityMappingAction, remote_field_value
from entity_sync.storage import EntityStore

logger = logging.getLogger(__name__)


class DefaultImportSubscriber:
    """Maps remote entities to the local entities holding their remote ID."""

    def __init__(self, entity_store: EntityStore):
        self.entity_store = entity_store

    def subscribed_events(self) -> Dict[str, Tuple[str, int]]:
        return {
            ImportEvents.REMOTE_ENTITY_MAPPING: ("build_entity_mapping", PRIORITY_DEFAULTS),
            ImportEvents.FIELD_MAPPING: ("build_field_mapping", PRIORITY_DEFAULTS),
        }

    async def build_entity_mapping(self, event: RemoteEntityMappingEvent) -> None:
        """Update the local entity with the remote ID, or create one."""
        sync = event.sync
        local_settings = sync.local_entity
        remote_id = remote_field_value(event.remote_entity, sync.remote_resource.id_field)

        # Limiting to the bundle keeps synchronizations targeting different
        # bundles of the same type apart.
        bundle = None
        if local_settings.bundle and self.entity_store.entity_type(local_settings.type_id).bundleable:
            bundle = local_settings.bundle

        local_ids = []
        if remote_id is not None:
            local_ids = await self.entity_store.query_ids_by_field(
                local_settings.type_id,
                local_settings.remote_id_field,
                remote_id,
                bundle=bundle,
            )

        if local_ids:
            event.entity_mapping = EntityMapping(
                action=EntityMappingAction.UPDATE,
                id=local_ids[0],
                entity_type_id=local_settings.type_id,
                entity_bundle=local_settings.bundle,
            )
        else:
            event.entity_mapping = EntityMapping(
                action=EntityMappingAction.CREATE,
                entity_type_id=local_settings.type_id,
                entity_bundle=local_settings.bundle,
            )

    def build_field_mapping(self, event: ImportFieldMappingEvent) -> None:
        event.field_mapping = list(event.sync.field_mapping)


class DefaultExportSubscriber:
    """Maps local entities to the remote entity ID they hold."""

    def subscribed_events(self) -> Dict[str, Tuple[str, int]]:
        return {
            ExportEvents.LOCAL_ENTITY_MAPPING: ("build_entity_mapping", PRIORITY_DEFAULTS),
            ExportEvents.FIELD_MAPPING: ("build_field_mapping", PRIORITY_DEFAULTS),
        }

    def build_entity_mapping(self, event: LocalEntityMappingEvent) -> None:
        """Export to the remote entity ID held by the local entity, if any.

        Entities without the remote ID field are not exported.
        """
        sync = event.sync
        local_entity = event.local_entity
        id_field_name = sync.local_entity.remote_id_field
        if not local_entity.has_field(id_field_name):
            return

        id_field = local_entity.get(id_field_name)
        event.entity_mapping = EntityMapping(
            action=EntityMappingAction.EXPORT,
            id=None if id_field.is_empty() else id_field.value,
            client=sync.remote_resource.client,
        )

    def build_field_mapping(self, event: ExportFieldMappingEvent) -> None:
        event.field_mapping = list(event.sync.field_mapping)
