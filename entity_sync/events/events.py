"""Event objects and names published by the synchronization operations.

Events are mutable request objects: the publisher dispatches them, any number
of subscribers may alter them, and the publisher reads back their final state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional

from entity_sync.models import (
    EntityMapping,
    FieldMapping,
    LocalEntity,
    Operation,
    SyncDefinition,
)


class ImportEvents:
    """Names of the events published by import operations."""

    REMOTE_ENTITY_MAPPING = "entity_sync.import.remote_entity_mapping"
    FIELD_MAPPING = "entity_sync.import.field_mapping"
    REMOTE_LIST_FILTERS = "entity_sync.import.remote_list_filters"

    REMOTE_LIST_PRE_INITIATE = "entity_sync.import.remote_list_pre_initiate"
    REMOTE_LIST_INITIATE = "entity_sync.import.remote_list_initiate"
    REMOTE_LIST_TERMINATE = "entity_sync.import.remote_list_terminate"
    REMOTE_LIST_POST_TERMINATE = "entity_sync.import.remote_list_post_terminate"

    REMOTE_ENTITY_PRE_INITIATE = "entity_sync.import.remote_entity_pre_initiate"
    REMOTE_ENTITY_INITIATE = "entity_sync.import.remote_entity_initiate"
    REMOTE_ENTITY_TERMINATE = "entity_sync.import.remote_entity_terminate"
    REMOTE_ENTITY_POST_TERMINATE = "entity_sync.import.remote_entity_post_terminate"

    # Published after each remote entity has been imported, in both list and
    # single entity imports.
    LOCAL_ENTITY_TERMINATE = "entity_sync.import.local_entity_terminate"


class ExportEvents:
    """Names of the events published by export operations."""

    LOCAL_ENTITY_MAPPING = "entity_sync.export.local_entity_mapping"
    FIELD_MAPPING = "entity_sync.export.field_mapping"

    LOCAL_ENTITY_PRE_INITIATE = "entity_sync.export.local_entity_pre_initiate"
    LOCAL_ENTITY_INITIATE = "entity_sync.export.local_entity_initiate"
    LOCAL_ENTITY_TERMINATE = "entity_sync.export.local_entity_terminate"
    LOCAL_ENTITY_POST_TERMINATE = "entity_sync.export.local_entity_post_terminate"


class Lifecycle(NamedTuple):
    pre_initiate: str
    initiate: str
    terminate: str
    post_terminate: str


LIFECYCLE_EVENTS: Dict[Operation, Lifecycle] = {
    Operation.IMPORT_LIST: Lifecycle(
        ImportEvents.REMOTE_LIST_PRE_INITIATE,
        ImportEvents.REMOTE_LIST_INITIATE,
        ImportEvents.REMOTE_LIST_TERMINATE,
        ImportEvents.REMOTE_LIST_POST_TERMINATE,
    ),
    Operation.IMPORT_ENTITY: Lifecycle(
        ImportEvents.REMOTE_ENTITY_PRE_INITIATE,
        ImportEvents.REMOTE_ENTITY_INITIATE,
        ImportEvents.REMOTE_ENTITY_TERMINATE,
        ImportEvents.REMOTE_ENTITY_POST_TERMINATE,
    ),
    Operation.EXPORT_ENTITY: Lifecycle(
        ExportEvents.LOCAL_ENTITY_PRE_INITIATE,
        ExportEvents.LOCAL_ENTITY_INITIATE,
        ExportEvents.LOCAL_ENTITY_TERMINATE,
        ExportEvents.LOCAL_ENTITY_POST_TERMINATE,
    ),
}


@dataclass
class RemoteEntityMappingEvent:
    """Resolves the local counterpart of a remote entity being imported."""
    remote_entity: Any
    sync: SyncDefinition
    entity_mapping: Optional[EntityMapping] = None


@dataclass
class LocalEntityMappingEvent:
    """Resolves the remote counterpart of a local entity being exported."""
    local_entity: LocalEntity
    sync: SyncDefinition
    entity_mapping: Optional[EntityMapping] = None


@dataclass
class ImportFieldMappingEvent:
    """Resolves the field mapping used to import a remote entity."""
    remote_entity: Any
    local_entity: LocalEntity
    sync: SyncDefinition
    field_mapping: List[FieldMapping] = field(default_factory=list)


@dataclass
class ExportFieldMappingEvent:
    """Resolves the field mapping used to export a local entity."""
    local_entity: LocalEntity
    remote_entity_id: Any
    sync: SyncDefinition
    field_mapping: List[FieldMapping] = field(default_factory=list)


@dataclass
class ListFiltersEvent:
    """Resolves the filters used to fetch a remote list."""
    operation: Operation
    sync: SyncDefinition
    filters: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationEvent:
    """Lifecycle event of an operation.

    `data` carries the outcome of the operation where there is one, such as
    the entity mapping and remote response of an export.
    """
    operation: Operation
    sync: SyncDefinition
    context: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PreInitiateOperationEvent(OperationEvent):
    """Published before an operation starts; subscribers may cancel it."""
    cancelled: bool = False
    messages: List[str] = field(default_factory=list)

    def cancel(self, message: Optional[str] = None) -> None:
        self.cancelled = True
        if message:
            self.messages.append(message)


@dataclass
class InitiateOperationEvent(OperationEvent):
    pass


@dataclass
class TerminateOperationEvent(OperationEvent):
    pass


@dataclass
class PostTerminateOperationEvent(OperationEvent):
    pass
