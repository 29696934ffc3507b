"""Named work queues processed by registered workers."""

import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Optional, Protocol
import logging

logger = logging.getLogger(__name__)

IMPORT_LIST_QUEUE = "entity_sync_import_list"
EXPORT_LOCAL_ENTITY_QUEUE = "entity_sync_export_local_entity"


class QueueWorker(Protocol):
    async def process_item(self, data: Dict[str, Any]) -> None:
        ...


class QueueService:
    """In-process queues of synchronization work items.

    Items are processed one at a time per queue; a failing item is logged and
    dropped so that it does not block the items after it.
    """

    def __init__(self):
        self.queues: Dict[str, asyncio.Queue] = defaultdict(asyncio.Queue)
        self._workers: Dict[str, QueueWorker] = {}
        self._tasks: List[asyncio.Task] = []
        self._shutdown = False

    def register_worker(self, queue_name: str, worker: QueueWorker) -> None:
        self._workers[queue_name] = worker

    async def create_item(self, queue_name: str, data: Dict[str, Any]) -> None:
        """Add an item to a queue."""
        await self.queues[queue_name].put(data)
        logger.debug(f"Queued item in {queue_name}: {data}")

    def size(self, queue_name: str) -> int:
        return self.queues[queue_name].qsize()

    async def process_item(self, queue_name: str, data: Dict[str, Any]) -> bool:
        """Process a single item with the worker of its queue.

        Returns:
            Whether the item was processed successfully.
        """
        worker = self._workers.get(queue_name)
        if worker is None:
            raise ValueError(f'No worker is registered for the "{queue_name}" queue')

        try:
            await worker.process_item(data)
            return True
        except Exception as e:
            logger.error(f"Failed to process item of {queue_name}: {e}", exc_info=True)
            return False

    async def process_queue(self, queue_name: str, limit: Optional[int] = None) -> int:
        """Process the items currently in a queue.

        Returns:
            The number of items taken from the queue.
        """
        queue = self.queues[queue_name]
        processed = 0
        while not queue.empty() and (limit is None or processed < limit):
            data = queue.get_nowait()
            try:
                await self.process_item(queue_name, data)
            finally:
                queue.task_done()
            processed += 1
        return processed

    async def start_processing(self) -> None:
        """Start a worker task for each queue with a registered worker."""
        logger.info("Starting queue processing...")
        self._shutdown = False
        for queue_name in self._workers:
            self._tasks.append(asyncio.create_task(self._process(queue_name)))

    async def stop_processing(self) -> None:
        """Stop the worker tasks."""
        logger.info("Stopping queue processing...")
        self._shutdown = True

        for task in self._tasks:
            if not task.done():
                task.cancel()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def _process(self, queue_name: str) -> None:
        logger.info(f"Queue worker for {queue_name} started")
        queue = self.queues[queue_name]

        while not self._shutdown:
            try:
                data = await asyncio.wait_for(queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            try:
                await self.process_item(queue_name, data)
            finally:
                queue.task_done()

        logger.info(f"Queue worker for {queue_name} stopped")
