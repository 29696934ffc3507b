"""Entity mapping decision models."""

from typing import Optional, Union
from pydantic import BaseModel
from enum import Enum

from entity_sync.models.sync import ClientBinding


class EntityMappingAction(str, Enum):
    """Actions an entity mapping can resolve to."""
    EXPORT = "export"
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


class EntityMapping(BaseModel):
    """Decision on what to do with an entity being synchronized.

    On imports `id` is the ID of the local entity to update; on exports it is
    the ID of the remote entity to update.
    """
    action: EntityMappingAction
    id: Optional[Union[int, str]] = None
    entity_type_id: Optional[str] = None
    entity_bundle: Optional[str] = None
    client: Optional[ClientBinding] = None
