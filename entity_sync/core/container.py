"""Wiring of the synchronization services."""

from typing import Optional, Type
import logging

from entity_sync.clients import ClientFactory, ClientRegistry
from entity_sync.core.config import Settings, get_settings
from entity_sync.core.database import Database, database
from entity_sync.events import EventDispatcher
from entity_sync.services import (
    ConfigManager,
    EXPORT_LOCAL_ENTITY_QUEUE,
    ExportEntityManager,
    ExportFieldManager,
    ExportLocalEntityWorker,
    IMPORT_LIST_QUEUE,
    ImportEntityManager,
    ImportFieldManager,
    ImportListWorker,
    QueueService,
    StateManager,
    TransformationService,
    transformation_service,
)
from entity_sync.services.config_manager import load_entity_types
from entity_sync.storage import (
    EntityStore,
    KeyValueStore,
    MemoryEntityStore,
    MemoryKeyValueStore,
    MongoEntityStore,
    RedisKeyValueStore,
)
from entity_sync.subscribers import (
    DefaultExportSubscriber,
    DefaultImportSubscriber,
    ManagedExportLocalEntityTerminate,
    ManagedImportListFilters,
    ManagedImportListTerminate,
    ManagedOperationLock,
)
from entity_sync.subscribers.managed import Clock, request_time

logger = logging.getLogger(__name__)


class SyncContainer:
    """Holds the services of the synchronization core and their collaborators.

    Collaborators not given are replaced by in-memory implementations.
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        state_store: Optional[KeyValueStore] = None,
        entity_store: Optional[EntityStore] = None,
        transformations: Optional[TransformationService] = None,
        dispatcher: Optional[EventDispatcher] = None,
        registry: Type[ClientRegistry] = ClientRegistry,
        clock: Clock = request_time,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.transformations = transformations or transformation_service
        self.config_manager = config_manager or ConfigManager(self.transformations)
        self.state_store = state_store or MemoryKeyValueStore()
        self.entity_store = entity_store or MemoryEntityStore()
        self.dispatcher = dispatcher or EventDispatcher()
        self.clock = clock

        self.client_factory = ClientFactory(self.config_manager, registry)
        self.state_manager = StateManager(
            self.config_manager,
            self.state_store,
            self.settings.state_collection_prefix,
        )
        self.queue_service = QueueService()

        self.import_field_manager = ImportFieldManager(self.dispatcher, self.transformations)
        self.export_field_manager = ExportFieldManager(self.dispatcher, self.transformations)
        self.import_manager = ImportEntityManager(
            self.config_manager,
            self.client_factory,
            self.entity_store,
            self.dispatcher,
            self.import_field_manager,
        )
        self.export_manager = ExportEntityManager(
            self.config_manager,
            self.client_factory,
            self.dispatcher,
            self.export_field_manager,
            self.state_manager,
            self.queue_service,
        )

        self.queue_service.register_worker(
            IMPORT_LIST_QUEUE,
            ImportListWorker(self.import_manager),
        )
        self.queue_service.register_worker(
            EXPORT_LOCAL_ENTITY_QUEUE,
            ExportLocalEntityWorker(self.export_manager, self.entity_store),
        )

        self._register_subscribers()

    def _register_subscribers(self) -> None:
        for subscriber in (
            DefaultImportSubscriber(self.entity_store),
            DefaultExportSubscriber(),
            ManagedImportListFilters(self.state_manager, self.clock),
            ManagedImportListTerminate(self.state_manager, self.clock),
            ManagedOperationLock(self.state_manager),
            ManagedExportLocalEntityTerminate(self.import_field_manager, self.entity_store),
        ):
            self.dispatcher.add_subscriber(subscriber)

    async def close(self) -> None:
        """Release the clients and the state store connection."""
        await self.queue_service.stop_processing()
        await self.client_factory.aclose_all()
        await self.state_store.close()


def build_container(settings: Optional[Settings] = None, db: Database = database) -> SyncContainer:
    """Build the container for the configured storage backends and definitions."""
    settings = settings or get_settings()

    entity_types = []
    if settings.entity_types_path:
        entity_types = load_entity_types(settings.entity_types_path)

    if settings.state_backend == "redis":
        state_store: KeyValueStore = RedisKeyValueStore(settings.redis_url)
    else:
        state_store = MemoryKeyValueStore()

    if settings.entity_backend == "mongo":
        entity_store: EntityStore = MongoEntityStore(db, entity_types)
    else:
        entity_store = MemoryEntityStore(entity_types)

    container = SyncContainer(
        state_store=state_store,
        entity_store=entity_store,
        settings=settings,
    )
    if settings.sync_config_path:
        container.config_manager.load_directory(settings.sync_config_path)

    logger.info(
        f"Built container with {len(container.config_manager.all())} synchronizations "
        f"and {len(entity_types)} entity types"
    )
    return container
