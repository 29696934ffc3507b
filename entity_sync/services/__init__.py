"""Services module for entity synchronization."""

from .transformation_service import TransformationService, transformation_service, Direction
from .config_manager import ConfigManager
from .state_manager import StateManager
from .import_field_manager import ImportFieldManager
from .export_field_manager import ExportFieldManager
from .import_entity_manager import ImportEntityManager
from .export_entity_manager import ExportEntityManager
from .queue_service import QueueService, IMPORT_LIST_QUEUE, EXPORT_LOCAL_ENTITY_QUEUE
from .queue_workers import ImportListWorker, ExportLocalEntityWorker

__all__ = [
    "TransformationService",
    "transformation_service",
    "Direction",
    "ConfigManager",
    "StateManager",
    "ImportFieldManager",
    "ExportFieldManager",
    "ImportEntityManager",
    "ExportEntityManager",
    "QueueService",
    "IMPORT_LIST_QUEUE",
    "EXPORT_LOCAL_ENTITY_QUEUE",
    "ImportListWorker",
    "ExportLocalEntityWorker",
]
