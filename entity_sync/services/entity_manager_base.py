"""Lifecycle helpers shared by the import and export entity managers."""

from typing import Any, Dict, Optional
import logging

from entity_sync.events import (
    EventDispatcher,
    InitiateOperationEvent,
    LIFECYCLE_EVENTS,
    PostTerminateOperationEvent,
    PreInitiateOperationEvent,
    TerminateOperationEvent,
)
from entity_sync.models import Operation, SyncDefinition

logger = logging.getLogger(__name__)


class EntityManagerBase:
    """Publishes the lifecycle events of synchronization operations."""

    dispatcher: EventDispatcher

    def operation_supported(self, sync: SyncDefinition, operation: Operation) -> bool:
        if sync.operation_enabled(operation):
            return True
        logger.error(
            f'The synchronization with ID "{sync.id}" does not support '
            f"the `{operation.value}` operation."
        )
        return False

    async def pre_initiate(
        self,
        operation: Operation,
        context: Dict[str, Any],
        sync: SyncDefinition,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Publish the pre-initiate event.

        Returns:
            Whether a subscriber cancelled the operation.
        """
        event = PreInitiateOperationEvent(
            operation=operation,
            sync=sync,
            context=context,
            data=data or {},
        )
        await self.dispatcher.dispatch(LIFECYCLE_EVENTS[operation].pre_initiate, event)
        if not event.cancelled:
            return False

        for message in event.messages:
            logger.warning(
                f'The {operation.value} operation for the synchronization with ID '
                f'"{sync.id}" was cancelled with message: {message}'
            )
        return True

    async def initiate(
        self,
        operation: Operation,
        context: Dict[str, Any],
        sync: SyncDefinition,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = InitiateOperationEvent(
            operation=operation,
            sync=sync,
            context=context,
            data=data or {},
        )
        await self.dispatcher.dispatch(LIFECYCLE_EVENTS[operation].initiate, event)

    async def terminate(
        self,
        operation: Operation,
        context: Dict[str, Any],
        sync: SyncDefinition,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = TerminateOperationEvent(
            operation=operation,
            sync=sync,
            context=context,
            data=data or {},
        )
        await self.dispatcher.dispatch(LIFECYCLE_EVENTS[operation].terminate, event)

    async def post_terminate(
        self,
        operation: Operation,
        context: Dict[str, Any],
        sync: SyncDefinition,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = PostTerminateOperationEvent(
            operation=operation,
            sync=sync,
            context=context,
            data=data or {},
        )
        await self.dispatcher.dispatch(LIFECYCLE_EVENTS[operation].post_terminate, event)
