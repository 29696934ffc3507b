"""Registry of remote client implementations."""

from typing import Callable, Dict, Optional

from entity_sync.clients.base import BaseClient

ClientConstructor = Callable[..., BaseClient]


class ClientRegistry:
    """Registry for remote client implementations, keyed by service name."""

    _clients: Dict[str, ClientConstructor] = {}

    @classmethod
    def register(cls, name: str):
        """Decorator to register a client class."""
        def decorator(client_class: ClientConstructor):
            cls._clients[name] = client_class
            return client_class
        return decorator

    @classmethod
    def get(cls, name: str) -> Optional[ClientConstructor]:
        """Get client class by service name."""
        return cls._clients.get(name)

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._clients.pop(name, None)

    @classmethod
    def list_names(cls) -> list[str]:
        """List all registered service names."""
        return list(cls._clients.keys())
