"""Synchronization definition models."""

from typing import Optional, Dict, Any, List, Union, Callable
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum

from entity_sync.core.config import STATE_MANAGER_ID


class Operation(str, Enum):
    """Operations a synchronization can perform."""
    IMPORT_LIST = "import_list"
    IMPORT_ENTITY = "import_entity"
    EXPORT_ENTITY = "export_entity"


class ChangedFieldFormat(str, Enum):
    """Formats the remote changed field can be provided in."""
    TIMESTAMP = "timestamp"
    STRING = "string"


class ClientBinding(BaseModel):
    """How the remote client for a synchronization is resolved."""
    type: Optional[str] = None
    service: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)


class ChangedFieldSettings(BaseModel):
    """The remote field holding the time an entity was last changed."""
    name: str
    format: ChangedFieldFormat = ChangedFieldFormat.TIMESTAMP


class LocalEntitySettings(BaseModel):
    """The local entity type/bundle a synchronization targets."""
    type_id: str
    bundle: Optional[str] = None
    remote_id_field: str = "sync_remote_id"
    remote_changed_field: str = "sync_remote_changed"


class RemoteResourceSettings(BaseModel):
    """The remote resource a synchronization targets."""
    name: Optional[str] = None
    client: Optional[ClientBinding] = None
    id_field: str = "id"
    changed_field: Optional[ChangedFieldSettings] = None


class StateSettings(BaseModel):
    """Managed state settings of an operation."""
    manager: Optional[str] = None
    lock: bool = False
    max_interval: Optional[int] = None
    fallback_start_time: Optional[int] = None

    @field_validator("max_interval")
    @classmethod
    def validate_max_interval(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError(
                f"The maximum interval must be a positive integer, {value} given"
            )
        return value

    @field_validator("fallback_start_time")
    @classmethod
    def validate_fallback_start_time(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError(
                f"The fallback start time must be a Unix timestamp, {value} given"
            )
        return value

    @property
    def is_managed(self) -> bool:
        return self.manager == STATE_MANAGER_ID


class OperationSettings(BaseModel):
    """Settings for a single synchronization operation."""
    status: bool = False
    create_entities: bool = True
    update_entities: bool = True
    state: StateSettings = Field(default_factory=StateSettings)


class OperationsSettings(BaseModel):
    """Settings for all operations of a synchronization."""
    import_list: OperationSettings = Field(default_factory=OperationSettings)
    import_entity: OperationSettings = Field(default_factory=OperationSettings)
    export_entity: OperationSettings = Field(default_factory=OperationSettings)


class FieldDirectionSettings(BaseModel):
    """Per-direction settings of a field mapping entry."""
    status: bool = True
    # Either the name of a function registered with the transformation
    # service or the function itself.
    callback: Optional[Union[str, Callable[..., Any]]] = None


class FieldMapping(BaseModel):
    """Correspondence between a local field and a remote field."""
    machine_name: str
    remote_name: str
    import_: FieldDirectionSettings = Field(
        default_factory=FieldDirectionSettings,
        alias="import",
    )
    export: FieldDirectionSettings = Field(default_factory=FieldDirectionSettings)

    model_config = ConfigDict(populate_by_name=True)

    def describe(self) -> Dict[str, Any]:
        """Plain representation used in log and error messages."""
        data = self.model_dump(by_alias=True)
        for direction in ("import", "export"):
            callback = data[direction]["callback"]
            if callable(callback):
                data[direction]["callback"] = getattr(callback, "__name__", repr(callback))
        return data


class SyncDefinition(BaseModel):
    """Synchronization between a local entity type and a remote resource."""
    id: str
    label: Optional[str] = None
    description: Optional[str] = None
    version: int = 1
    local_entity: LocalEntitySettings
    remote_resource: RemoteResourceSettings
    operations: OperationsSettings = Field(default_factory=OperationsSettings)
    field_mapping: List[FieldMapping] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def operation(self, operation: Union[Operation, str]) -> OperationSettings:
        """Get the settings for the given operation."""
        return getattr(self.operations, Operation(operation).value)

    def operation_enabled(self, operation: Union[Operation, str]) -> bool:
        return self.operation(operation).status
