"""Registry of field mapping callbacks."""

import inspect
import re
from typing import Dict, Any, Callable, Union
import logging
from enum import Enum

from entity_sync.core.exceptions import ConfigurationError
from entity_sync.models import (
    EMPTY,
    FieldMapping,
    LocalEntity,
    remote_field_exists,
    remote_field_value,
)

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    """Directions a field mapping callback can be used in."""
    IMPORT = "import"
    EXPORT = "export"


class TransformationService:
    """Resolves the callbacks referenced by field mapping entries.

    Field callbacks are called on imports with the remote entity, the local
    entity and the field mapping entry, and are responsible for setting the
    local field. On exports they are called with the local entity, the remote
    entity ID and the field mapping entry, and return the value to export, or
    `EMPTY` when the field has no value to export.

    Value functions convert a single value and can be referenced by name in
    either direction; they are applied to each value of the field.
    """

    def __init__(self):
        self._callbacks: Dict[str, Callable] = {}
        self._value_functions: Dict[str, Callable[[Any], Any]] = {}
        self._initialize_builtin_functions()

    def _initialize_builtin_functions(self):
        """Initialize built-in value functions."""
        self._value_functions.update({
            "uppercase": lambda x: str(x).upper(),
            "lowercase": lambda x: str(x).lower(),
            "trim": lambda x: str(x).strip(),
            "snake_case": lambda x: re.sub(r'[\s\-]+', '_', str(x).lower()),
            "email_normalize": lambda x: str(x).lower().strip(),
            "string": str,
            "integer": int,
            "boolean": bool,
        })

    def register_function(self, name: str, func: Callable):
        """Register a field callback."""
        self._callbacks[name] = func
        logger.info(f"Registered field callback: {name}")

    def register_value_function(self, name: str, func: Callable[[Any], Any]):
        """Register a value function."""
        self._value_functions[name] = func
        logger.info(f"Registered value function: {name}")

    def has(self, name: str) -> bool:
        return name in self._callbacks or name in self._value_functions

    def resolve(self, callback: Union[str, Callable], direction: Direction) -> Callable:
        """Get the field callback for a callback reference.

        Raises:
            ConfigurationError: If no callback is registered by the given name.
        """
        if callable(callback):
            return callback
        if callback in self._callbacks:
            return self._callbacks[callback]
        if callback in self._value_functions:
            func = self._value_functions[callback]
            if Direction(direction) == Direction.IMPORT:
                return self._import_value_callback(func)
            return self._export_value_callback(func)
        raise ConfigurationError(f'Unknown field mapping callback "{callback}"')

    async def call(self, callback: Union[str, Callable], direction: Direction, *args: Any) -> Any:
        """Call a field callback, awaiting its result when needed."""
        result = self.resolve(callback, direction)(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    def _convert(func: Callable[[Any], Any], value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return [None if item is None else func(item) for item in value]
        return func(value)

    def _import_value_callback(self, func: Callable[[Any], Any]) -> Callable:
        def callback(remote_entity: Any, local_entity: LocalEntity, field_mapping: FieldMapping):
            if not remote_field_exists(remote_entity, field_mapping.remote_name):
                return
            value = remote_field_value(remote_entity, field_mapping.remote_name)
            local_entity.set(field_mapping.machine_name, self._convert(func, value))
        return callback

    def _export_value_callback(self, func: Callable[[Any], Any]) -> Callable:
        def callback(local_entity: LocalEntity, remote_entity_id: Any, field_mapping: FieldMapping):
            items = local_entity.get(field_mapping.machine_name)
            if items.is_empty():
                return EMPTY
            values = self._convert(func, items.main_values())
            if items.definition.is_multiple:
                return values
            return values[0]
        return callback


# Singleton instance
transformation_service = TransformationService()
