"""Events and the dispatcher implementing the extension points."""

from .dispatcher import (
    EventDispatcher,
    PRIORITY_DEFAULTS,
    PRIORITY_FIRST,
    PRIORITY_LAST,
    PRIORITY_NORMAL,
)
from .events import (
    ExportEvents,
    ExportFieldMappingEvent,
    ImportEvents,
    ImportFieldMappingEvent,
    InitiateOperationEvent,
    LIFECYCLE_EVENTS,
    Lifecycle,
    ListFiltersEvent,
    LocalEntityMappingEvent,
    OperationEvent,
    PostTerminateOperationEvent,
    PreInitiateOperationEvent,
    RemoteEntityMappingEvent,
    TerminateOperationEvent,
)

__all__ = [
    "EventDispatcher",
    "PRIORITY_DEFAULTS",
    "PRIORITY_FIRST",
    "PRIORITY_LAST",
    "PRIORITY_NORMAL",
    "ExportEvents",
    "ExportFieldMappingEvent",
    "ImportEvents",
    "ImportFieldMappingEvent",
    "InitiateOperationEvent",
    "LIFECYCLE_EVENTS",
    "Lifecycle",
    "ListFiltersEvent",
    "LocalEntityMappingEvent",
    "OperationEvent",
    "PostTerminateOperationEvent",
    "PreInitiateOperationEvent",
    "RemoteEntityMappingEvent",
    "TerminateOperationEvent",
]
