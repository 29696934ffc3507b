"""Models for the entity sync service."""

from .sync import (
    ChangedFieldFormat,
    ChangedFieldSettings,
    ClientBinding,
    FieldDirectionSettings,
    FieldMapping,
    LocalEntitySettings,
    Operation,
    OperationSettings,
    OperationsSettings,
    RemoteResourceSettings,
    StateSettings,
    SyncDefinition,
)
from .mapping import EntityMapping, EntityMappingAction
from .state import OperationState, RunRecord
from .entity import (
    CARDINALITY_UNLIMITED,
    EMPTY,
    EntityTypeDefinition,
    FieldDefinition,
    FieldItemList,
    LocalEntity,
    remote_field_exists,
    remote_field_value,
)

__all__ = [
    "ChangedFieldFormat",
    "ChangedFieldSettings",
    "ClientBinding",
    "FieldDirectionSettings",
    "FieldMapping",
    "LocalEntitySettings",
    "Operation",
    "OperationSettings",
    "OperationsSettings",
    "RemoteResourceSettings",
    "StateSettings",
    "SyncDefinition",
    "EntityMapping",
    "EntityMappingAction",
    "OperationState",
    "RunRecord",
    "CARDINALITY_UNLIMITED",
    "EMPTY",
    "EntityTypeDefinition",
    "FieldDefinition",
    "FieldItemList",
    "LocalEntity",
    "remote_field_exists",
    "remote_field_value",
]
