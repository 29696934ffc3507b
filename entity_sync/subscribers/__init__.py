"""Event subscribers."""

from .defaults import DefaultExportSubscriber, DefaultImportSubscriber
from .managed import (
    LOCKED_MESSAGE,
    ManagedExportLocalEntityTerminate,
    ManagedImportListFilters,
    ManagedImportListTerminate,
    ManagedOperationLock,
)

__all__ = [
    "DefaultExportSubscriber",
    "DefaultImportSubscriber",
    "LOCKED_MESSAGE",
    "ManagedExportLocalEntityTerminate",
    "ManagedImportListFilters",
    "ManagedImportListTerminate",
    "ManagedOperationLock",
]
