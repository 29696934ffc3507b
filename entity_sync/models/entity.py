"""Local entity models and remote entity accessors."""

from typing import Optional, Dict, Any, List, Mapping
from pydantic import BaseModel, Field

from entity_sync.core.exceptions import FieldNotFoundError

CARDINALITY_UNLIMITED = -1

# Marks a field that has no value to export; no remote key is emitted for it.
EMPTY = object()


class FieldDefinition(BaseModel):
    """Schema of a local entity field."""
    name: str
    cardinality: int = 1
    main_property: str = "value"

    @property
    def is_multiple(self) -> bool:
        return self.cardinality != 1


class EntityTypeDefinition(BaseModel):
    """Schema of a local entity type."""
    id: str
    bundleable: bool = False
    fields: Dict[str, FieldDefinition] = Field(default_factory=dict)
    bundle_fields: Dict[str, Dict[str, FieldDefinition]] = Field(default_factory=dict)

    def fields_for(self, bundle: Optional[str] = None) -> Dict[str, FieldDefinition]:
        """Get the fields available on entities of the given bundle."""
        if not bundle or bundle not in self.bundle_fields:
            return self.fields
        return {**self.fields, **self.bundle_fields[bundle]}


class FieldItemList:
    """The items held by a field of a local entity."""

    def __init__(self, definition: FieldDefinition, items: Optional[List[Dict[str, Any]]] = None):
        self.definition = definition
        self.items = items or []

    def is_empty(self) -> bool:
        return not self.items

    @property
    def value(self) -> Any:
        """Main property value of the first item."""
        if not self.items:
            return None
        return self.items[0].get(self.definition.main_property)

    def main_values(self) -> List[Any]:
        """Main property values of all items, in item order."""
        main_property = self.definition.main_property
        return [item.get(main_property) for item in self.items]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldItemList):
            return NotImplemented
        return self.items == other.items

    def __repr__(self) -> str:
        return f"FieldItemList({self.definition.name!r}, {self.items!r})"


def normalize_items(definition: FieldDefinition, value: Any) -> List[Dict[str, Any]]:
    """Convert a value given for a field to its list of items.

    `None` empties the field. Scalars become items holding the value in the
    field's main property; mappings are taken as complete items.
    """
    if value is None:
        return []
    if isinstance(value, FieldItemList):
        return [dict(item) for item in value.items]

    values = value if isinstance(value, (list, tuple)) else [value]
    items = []
    for item in values:
        if isinstance(item, Mapping):
            items.append(dict(item))
        else:
            items.append({definition.main_property: item})

    if definition.cardinality > 0 and len(items) > definition.cardinality:
        raise ValueError(
            f'The field "{definition.name}" accepts at most '
            f"{definition.cardinality} item(s), {len(items)} given"
        )
    return items


class LocalEntity:
    """A local entity made of named fields."""

    def __init__(
        self,
        entity_type: EntityTypeDefinition,
        bundle: Optional[str] = None,
        entity_id: Any = None,
        values: Optional[Dict[str, Any]] = None,
    ):
        self.entity_type = entity_type
        self.bundle = bundle
        self.id = entity_id
        self._items: Dict[str, List[Dict[str, Any]]] = {}
        for name, value in (values or {}).items():
            self.set(name, value)

    @property
    def entity_type_id(self) -> str:
        return self.entity_type.id

    def is_new(self) -> bool:
        return self.id is None

    def has_field(self, name: str) -> bool:
        return name in self.entity_type.fields_for(self.bundle)

    def field_names(self) -> List[str]:
        return list(self.entity_type.fields_for(self.bundle))

    def _definition(self, name: str) -> FieldDefinition:
        definition = self.entity_type.fields_for(self.bundle).get(name)
        if definition is None:
            raise FieldNotFoundError(
                f'The field "{name}" does not exist on "{self.entity_type_id}" entities'
            )
        return definition

    def get(self, name: str) -> FieldItemList:
        definition = self._definition(name)
        return FieldItemList(definition, [dict(item) for item in self._items.get(name, [])])

    def set(self, name: str, value: Any) -> None:
        definition = self._definition(name)
        self._items[name] = normalize_items(definition, value)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        """Field items keyed by field name, omitting empty fields."""
        return {
            name: [dict(item) for item in items]
            for name, items in self._items.items()
            if items
        }

    def describe(self) -> str:
        if self.is_new():
            return "a new local entity"
        return f'the local entity with ID "{self.id}"'

    def __repr__(self) -> str:
        return f"LocalEntity({self.entity_type_id!r}, bundle={self.bundle!r}, id={self.id!r})"


def remote_field_exists(remote_entity: Any, name: str) -> bool:
    """Whether the remote entity carries the given property, even if null."""
    if isinstance(remote_entity, Mapping):
        return name in remote_entity
    return hasattr(remote_entity, name)


def remote_field_value(remote_entity: Any, name: str, default: Any = None) -> Any:
    """Get a property of a remote entity."""
    if isinstance(remote_entity, Mapping):
        return remote_entity.get(name, default)
    return getattr(remote_entity, name, default)
