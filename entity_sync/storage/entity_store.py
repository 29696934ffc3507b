"""Local entity persistence interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from entity_sync.core.exceptions import ConfigurationError
from entity_sync.models import EntityTypeDefinition, LocalEntity


class EntityStore(ABC):
    """Loads, queries and saves local entities of known types."""

    def __init__(self, entity_types: Optional[Iterable[EntityTypeDefinition]] = None):
        self._entity_types: Dict[str, EntityTypeDefinition] = {}
        for entity_type in entity_types or []:
            self.register_type(entity_type)

    def register_type(self, entity_type: EntityTypeDefinition) -> None:
        self._entity_types[entity_type.id] = entity_type

    def has_type(self, type_id: str) -> bool:
        return type_id in self._entity_types

    def entity_type(self, type_id: str) -> EntityTypeDefinition:
        """Get the definition of the given entity type."""
        entity_type = self._entity_types.get(type_id)
        if entity_type is None:
            raise ConfigurationError(f'Unknown local entity type "{type_id}"')
        return entity_type

    def create(
        self,
        type_id: str,
        bundle: Optional[str] = None,
        values: Optional[Dict[str, Any]] = None,
    ) -> LocalEntity:
        """Instantiate a new, unsaved entity."""
        return LocalEntity(self.entity_type(type_id), bundle=bundle, values=values)

    @abstractmethod
    async def load(self, type_id: str, entity_id: Any) -> Optional[LocalEntity]:
        """Load an entity by ID, returning None if it does not exist."""
        pass

    @abstractmethod
    async def query_ids_by_field(
        self,
        type_id: str,
        field_name: str,
        value: Any,
        bundle: Optional[str] = None,
    ) -> List[Any]:
        """Get the IDs of entities whose field main value equals the given one.

        IDs are returned in ascending order.
        """
        pass

    @abstractmethod
    async def save(self, entity: LocalEntity) -> LocalEntity:
        """Persist an entity, assigning an ID to new ones."""
        pass
