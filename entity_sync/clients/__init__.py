"""Remote clients."""

from .iterator import RemoteListIterator
from .base import BaseClient, ClientError
from .registry import ClientRegistry
from .factory import ClientFactory
from .http import HttpJsonClient

__all__ = [
    "RemoteListIterator",
    "BaseClient",
    "ClientError",
    "ClientRegistry",
    "ClientFactory",
    "HttpJsonClient",
]
