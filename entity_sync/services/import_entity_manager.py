"""Import of remote entities into local entities."""

from typing import Any, AsyncIterator, Dict, Optional
import logging

from entity_sync.clients import ClientFactory, RemoteListIterator
from entity_sync.core.exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    EntitySyncError,
    UnsupportedActionError,
)
from entity_sync.events import (
    EventDispatcher,
    ImportEvents,
    ListFiltersEvent,
    RemoteEntityMappingEvent,
    TerminateOperationEvent,
)
from entity_sync.models import (
    EntityMapping,
    EntityMappingAction,
    LocalEntity,
    Operation,
    SyncDefinition,
    remote_field_value,
)
from entity_sync.services.config_manager import ConfigManager
from entity_sync.services.entity_manager_base import EntityManagerBase
from entity_sync.services.import_field_manager import ImportFieldManager
from entity_sync.storage import EntityStore

logger = logging.getLogger(__name__)


class ImportEntityManager(EntityManagerBase):
    """Imports remote entities, one at a time or from remote lists."""

    def __init__(
        self,
        config_manager: ConfigManager,
        client_factory: ClientFactory,
        entity_store: EntityStore,
        dispatcher: EventDispatcher,
        field_manager: ImportFieldManager,
    ):
        self.config_manager = config_manager
        self.client_factory = client_factory
        self.entity_store = entity_store
        self.dispatcher = dispatcher
        self.field_manager = field_manager

    async def import_remote_list(
        self,
        sync_id: str,
        filters: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Import the remote entities of a list.

        Filters:
            changed_start / changed_end: Bounds of the time the remote
                entities were last changed.

        Options:
            limit: Page size of paginated lists.
            client: Options passed to the client's `list`, such as
                `parameters`.
            context: Passed to the lifecycle events.

        Entities failing to import are logged and skipped. Configuration
        errors are raised.
        """
        sync = self.config_manager.get_sync(sync_id)
        operation = Operation.IMPORT_LIST
        if not self.operation_supported(sync, operation):
            return

        options = options or {}
        context = dict(options.get("context") or {})
        if await self.pre_initiate(operation, context, sync):
            return

        try:
            filters = await self.remote_list_filters(sync, filters or {}, context)
            await self.initiate(operation, context, sync, {"filters": filters})

            client_options = dict(options.get("client") or {})
            if options.get("limit"):
                client_options["limit"] = options["limit"]

            remote_entities = await self.client_factory.get(sync_id).list(filters, client_options)
            count = 0
            if remote_entities is not None:
                async for remote_entity in self._flatten(remote_entities):
                    count += 1
                    await self._try_import_list_entity(remote_entity, sync, context)

            logger.info(f"Processed {count} remote entities for synchronization {sync_id}")
            await self.terminate(operation, context, sync, {"filters": filters, "count": count})
        finally:
            await self.post_terminate(operation, context, sync)

    async def _try_import_list_entity(
        self,
        remote_entity: Any,
        sync: SyncDefinition,
        context: Dict[str, Any],
    ) -> None:
        try:
            await self.import_entity(remote_entity, sync, Operation.IMPORT_LIST, context)
        except ConfigurationError:
            raise
        except Exception as e:
            remote_id = remote_field_value(remote_entity, sync.remote_resource.id_field)
            logger.error(
                f'Failed to import the remote entity with ID "{remote_id}" for the '
                f'synchronization with ID "{sync.id}": {e}',
                exc_info=True,
            )

    async def _flatten(self, remote_entities: Any) -> AsyncIterator[Any]:
        """Iterate over remote entities, flattening one level of pages."""
        if isinstance(remote_entities, RemoteListIterator):
            async for remote_entity in remote_entities.items():
                yield remote_entity
            return

        if hasattr(remote_entities, "__aiter__"):
            async for item in remote_entities:
                for remote_entity in self._page_items(item):
                    yield remote_entity
            return

        for item in remote_entities:
            for remote_entity in self._page_items(item):
                yield remote_entity

    @staticmethod
    def _page_items(item: Any):
        if isinstance(item, (list, tuple)):
            return item
        return [item]

    async def import_remote_entity(
        self,
        sync_id: str,
        remote_id: Any,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[LocalEntity]:
        """Fetch a remote entity by ID and import it.

        Returns:
            The imported local entity, or None if the import did not happen.
        """
        sync = self.config_manager.get_sync(sync_id)
        operation = Operation.IMPORT_ENTITY
        if not self.operation_supported(sync, operation):
            return None

        options = options or {}
        context = dict(options.get("context") or {})
        if await self.pre_initiate(operation, context, sync, {"remote_entity_id": remote_id}):
            return None

        try:
            await self.initiate(operation, context, sync, {"remote_entity_id": remote_id})
            remote_entity = await self.client_factory.get(sync_id).get(remote_id)
            if remote_entity is None:
                raise EntityNotFoundError(
                    f'No remote entity with ID "{remote_id}" was found for the '
                    f'synchronization with ID "{sync_id}"'
                )
            local_entity = await self.import_entity(remote_entity, sync, operation, context)
            await self.terminate(
                operation,
                context,
                sync,
                {"remote_entity": remote_entity, "local_entity": local_entity},
            )
        finally:
            await self.post_terminate(operation, context, sync)

        return local_entity

    async def import_entity(
        self,
        remote_entity: Any,
        sync: SyncDefinition,
        operation: Operation = Operation.IMPORT_ENTITY,
        context: Optional[Dict[str, Any]] = None,
    ) -> Optional[LocalEntity]:
        """Create or update the local entity for a remote entity and save it.

        Returns:
            The saved local entity, or None when the entity mapping skips it.
        """
        entity_mapping = await self.remote_entity_mapping(remote_entity, sync)
        if entity_mapping is None or entity_mapping.action == EntityMappingAction.SKIP:
            logger.debug(f"Skipping remote entity for synchronization {sync.id}")
            return None

        if entity_mapping.action == EntityMappingAction.CREATE:
            local_entity = self._create_local_entity(entity_mapping, sync)
        elif entity_mapping.action == EntityMappingAction.UPDATE:
            local_entity = await self._load_local_entity(entity_mapping, sync)
        else:
            raise UnsupportedActionError(entity_mapping.action.value)

        await self.field_manager.import_fields(remote_entity, local_entity, sync)
        await self.entity_store.save(local_entity)

        event = TerminateOperationEvent(
            operation=operation,
            sync=sync,
            context={
                **(context or {}),
                "remote_entity": remote_entity,
                "entity_mapping": entity_mapping,
                "local_entity": local_entity,
            },
        )
        await self.dispatcher.dispatch(ImportEvents.LOCAL_ENTITY_TERMINATE, event)
        return local_entity

    def _create_local_entity(self, entity_mapping: EntityMapping, sync: SyncDefinition) -> LocalEntity:
        type_id = entity_mapping.entity_type_id or sync.local_entity.type_id
        entity_type = self.entity_store.entity_type(type_id)
        if entity_type.bundleable and not entity_mapping.entity_bundle:
            raise EntitySyncError(
                f'A bundle is required to create a new local "{type_id}" entity for '
                f'the synchronization with ID "{sync.id}"'
            )
        return self.entity_store.create(type_id, entity_mapping.entity_bundle)

    async def _load_local_entity(self, entity_mapping: EntityMapping, sync: SyncDefinition) -> LocalEntity:
        type_id = entity_mapping.entity_type_id or sync.local_entity.type_id
        local_entity = await self.entity_store.load(type_id, entity_mapping.id)
        if local_entity is None:
            raise EntityNotFoundError(
                f'No local "{type_id}" entity with ID "{entity_mapping.id}" was found '
                f'to update for the synchronization with ID "{sync.id}"'
            )
        return local_entity

    async def remote_entity_mapping(self, remote_entity: Any, sync: SyncDefinition) -> Optional[EntityMapping]:
        """Resolve the entity mapping through the entity mapping subscribers."""
        event = RemoteEntityMappingEvent(remote_entity=remote_entity, sync=sync)
        await self.dispatcher.dispatch(ImportEvents.REMOTE_ENTITY_MAPPING, event)
        return event.entity_mapping

    async def remote_list_filters(
        self,
        sync: SyncDefinition,
        filters: Dict[str, Any],
        context: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Resolve the list filters through the list filters subscribers."""
        event = ListFiltersEvent(
            operation=Operation.IMPORT_LIST,
            sync=sync,
            filters=dict(filters),
            context=context,
        )
        await self.dispatcher.dispatch(ImportEvents.REMOTE_LIST_FILTERS, event)
        return event.filters
