"""Synchronization of local entities with remote resources."""

__version__ = "1.0.0"
