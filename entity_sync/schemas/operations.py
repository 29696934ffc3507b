"""Operation API schemas."""

from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field

from entity_sync.models import EntityMappingAction, RunRecord


class ImportListRequest(BaseModel):
    """Schema for importing a remote list."""
    changed_start: Optional[int] = None
    changed_end: Optional[int] = None
    limit: Optional[int] = Field(default=None, ge=1)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    context: Dict[str, Any] = Field(default_factory=dict)
    queue: bool = False

    def filters(self) -> Dict[str, Any]:
        filters = {}
        if self.changed_start is not None:
            filters["changed_start"] = self.changed_start
        if self.changed_end is not None:
            filters["changed_end"] = self.changed_end
        return filters

    def options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"context": self.context}
        if self.limit:
            options["limit"] = self.limit
        if self.parameters:
            options["client"] = {"parameters": self.parameters}
        return options


class ImportListResponse(BaseModel):
    """Import list response."""
    sync_id: str
    queued: bool = False


class ImportEntityRequest(BaseModel):
    """Schema for importing a single remote entity."""
    remote_id: Any
    context: Dict[str, Any] = Field(default_factory=dict)


class LocalEntityResponse(BaseModel):
    """A local entity."""
    entity_type_id: str
    bundle: Optional[str] = None
    id: Optional[Any] = None
    fields: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)


class ImportEntityResponse(BaseModel):
    """Import entity response."""
    sync_id: str
    imported: bool
    local_entity: Optional[LocalEntityResponse] = None


class ExportEntityRequest(BaseModel):
    """Schema for exporting a local entity."""
    entity_type_id: str
    entity_id: Any
    queue: bool = False


class ExportEntityResponse(BaseModel):
    """Export entity response."""
    sync_id: str
    exported: bool = False
    queued: bool = False
    action: Optional[EntityMappingAction] = None
    response: Optional[Any] = None


class OperationStateResponse(BaseModel):
    """State of a synchronization operation."""
    sync_id: str
    operation: str
    managed: bool
    locked: bool
    last_run: Optional[RunRecord] = None
    current_run: Optional[RunRecord] = None


class SyncSummary(BaseModel):
    """Summary of a synchronization definition."""
    id: str
    label: Optional[str] = None
    local_entity_type_id: str
    local_entity_bundle: Optional[str] = None
    remote_resource: Optional[str] = None
    operations: Dict[str, bool] = Field(default_factory=dict)
