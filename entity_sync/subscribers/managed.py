"""Subscribers managing the run state and locks of managed operations."""

from typing import Callable, Dict, Tuple
import logging
import time

from entity_sync.core.config import STATE_MANAGER_ID
from entity_sync.core.exceptions import ConfigurationError
from entity_sync.events import (
    ExportEvents,
    ImportEvents,
    LIFECYCLE_EVENTS,
    ListFiltersEvent,
    PostTerminateOperationEvent,
    PreInitiateOperationEvent,
    PRIORITY_FIRST,
    PRIORITY_LAST,
    PRIORITY_NORMAL,
    TerminateOperationEvent,
)
from entity_sync.models import EntityMappingAction, Operation, remote_field_value
from entity_sync.services.import_field_manager import ImportFieldManager
from entity_sync.services.state_manager import StateManager
from entity_sync.storage import EntityStore
from entity_sync.utils.datetime import time_after_time

logger = logging.getLogger(__name__)

LOCKED_MESSAGE = (
    "The operation is in a locked state. That may have happened because it is "
    "currently running, because a user has manually locked it, or because it "
    "got stuck in a locked state due to an error."
)

Clock = Callable[[], int]


def request_time() -> int:
    return int(time.time())


class ManagedImportListFilters:
    """Limits managed list imports to the entities changed since the last run.

    The window starts where the last run ended, or at the fallback start time
    on the first run, and ends at the request time. With a maximum interval
    the window is at most that long. Filters given by the caller are kept.
    """

    def __init__(self, state_manager: StateManager, clock: Clock = request_time):
        self.state_manager = state_manager
        self.clock = clock

    def subscribed_events(self) -> Dict[str, Tuple[str, int]]:
        return {
            ImportEvents.REMOTE_LIST_FILTERS: ("build_filters", PRIORITY_NORMAL),
        }

    async def build_filters(self, event: ListFiltersEvent) -> None:
        sync_id = event.sync.id
        state = event.sync.operation(Operation.IMPORT_LIST).state
        if not state.is_managed:
            return

        now = self.clock()
        filters = event.filters

        start_time = filters.get("changed_start")
        if start_time is None:
            last_run = await self.state_manager.get_last_run(sync_id, Operation.IMPORT_LIST)
            if last_run is not None and last_run.end_time is not None:
                start_time = last_run.end_time
            elif state.fallback_start_time is not None:
                start_time = state.fallback_start_time

        if state.max_interval is not None and start_time is None:
            raise ConfigurationError(
                f'The synchronization with ID "{sync_id}" defines a maximum interval '
                f"for managed list imports but no fallback start time to use on the first run"
            )

        end_time = filters.get("changed_end")
        if end_time is None:
            if state.max_interval is None:
                end_time = now
            else:
                end_time = time_after_time(start_time, state.max_interval, now)

        if start_time is not None:
            filters["changed_start"] = start_time
        filters["changed_end"] = end_time

        await self.state_manager.set_current_run(
            sync_id,
            Operation.IMPORT_LIST,
            now,
            start_time,
            end_time,
        )
        logger.debug(f"Managed window for {sync_id}: {start_time} to {end_time}")


class ManagedImportListTerminate:
    """Records a completed managed list import as the last run."""

    def __init__(self, state_manager: StateManager, clock: Clock = request_time):
        self.state_manager = state_manager
        self.clock = clock

    def subscribed_events(self) -> Dict[str, Tuple[str, int]]:
        # Runs last so that other subscribers see the previous last run.
        return {
            ImportEvents.REMOTE_LIST_TERMINATE: ("set_last_run", PRIORITY_LAST),
        }

    async def set_last_run(self, event: TerminateOperationEvent) -> None:
        sync_id = event.sync.id
        if not event.sync.operation(event.operation).state.is_managed:
            return

        current_run = await self.state_manager.get_current_run(sync_id, event.operation)
        await self.state_manager.set_last_run(
            sync_id,
            event.operation,
            self.clock(),
            current_run.start_time if current_run else None,
            current_run.end_time if current_run else None,
        )
        await self.state_manager.unset_current_run(sync_id, event.operation)


class ManagedOperationLock:
    """Prevents overlapping runs of managed operations that require a lock.

    The lock is acquired before the operation initiates and released after it
    terminates. Runs that fail to acquire it are cancelled.
    """

    def __init__(self, state_manager: StateManager):
        self.state_manager = state_manager

    def subscribed_events(self) -> Dict[str, Tuple[str, int]]:
        events = {}
        for lifecycle in LIFECYCLE_EVENTS.values():
            events[lifecycle.pre_initiate] = ("lock", PRIORITY_LAST)
            events[lifecycle.post_terminate] = ("unlock", PRIORITY_FIRST)
        return events

    async def lock(self, event: PreInitiateOperationEvent) -> None:
        state = event.sync.operation(event.operation).state
        if not state.is_managed or not state.lock:
            return
        # Do not hold a lock for a run that will not happen.
        if event.cancelled:
            return

        acquired = await self.state_manager.acquire_lock(event.sync.id, event.operation)
        if not acquired:
            event.cancel(LOCKED_MESSAGE)
            return

        event.context["state"] = {"manager": STATE_MANAGER_ID, "locked": True}

    async def unlock(self, event: PostTerminateOperationEvent) -> None:
        state = event.context.get("state") or {}
        if state.get("manager") != STATE_MANAGER_ID or not state.get("locked"):
            return

        await self.state_manager.unlock(event.sync.id, event.operation)
        state["locked"] = False


class ManagedExportLocalEntityTerminate:
    """Writes the remote ID and changed time back onto exported entities."""

    def __init__(self, field_manager: ImportFieldManager, entity_store: EntityStore):
        self.field_manager = field_manager
        self.entity_store = entity_store

    def subscribed_events(self) -> Dict[str, Tuple[str, int]]:
        return {
            ExportEvents.LOCAL_ENTITY_TERMINATE: ("write_back", PRIORITY_NORMAL),
        }

    async def write_back(self, event: TerminateOperationEvent) -> None:
        sync = event.sync
        if not sync.operation(Operation.EXPORT_ENTITY).state.is_managed:
            return

        action = event.data.get("action")
        response = event.data.get("response")
        local_entity = event.context.get("local_entity")
        if response is None or local_entity is None:
            return
        if action not in (EntityMappingAction.CREATE, EntityMappingAction.UPDATE):
            return

        changed = False
        if action == EntityMappingAction.CREATE:
            self.field_manager.set_remote_id_field(response, local_entity, sync)
            changed = True

        changed_field = sync.remote_resource.changed_field
        if changed_field and remote_field_value(response, changed_field.name) is not None:
            self.field_manager.set_remote_changed_field(response, local_entity, sync)
            changed = True

        if changed:
            await self.entity_store.save(local_entity)
            logger.info(
                f"Updated the remote fields of {local_entity.describe()} "
                f"for synchronization {sync.id}"
            )
