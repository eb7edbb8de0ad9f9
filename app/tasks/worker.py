"""Invoice worker: pulls tasks from a queue and runs them one at a time.

Run a standalone Redis-backed worker with::

    python -m app.tasks.worker
"""
import asyncio
import signal
from typing import Dict, Optional

from app.core.config import settings
from app.core.enums import InvoiceTaskState
from app.core.logging import setup_logging, get_logger
from app.tasks.invoice import InvoiceTask
from app.tasks.queue import Reservation, TaskQueue, RedisTaskQueue


logger = get_logger(__name__)


class InvoiceWorker:
    """Consumes a single queue slot at a time.

    Because a task is held until it completes, fails or is re-queued,
    attempts for the same order never overlap.
    """

    def __init__(self, queue: TaskQueue, task: Optional[InvoiceTask] = None):
        self.queue = queue
        self.task = task or InvoiceTask()

    async def process_next(self, timeout: float = 0) -> Optional[InvoiceTaskState]:
        """Run one attempt of the next task. Returns None when the queue is empty."""
        reservation = await self.queue.reserve(timeout)
        if reservation is None:
            return None
        return await self._run(reservation)

    async def _run(self, reservation: Reservation) -> InvoiceTaskState:
        state = await self.task.handle(reservation.payload)
        if state is InvoiceTaskState.QUEUED:
            await self.queue.requeue(reservation)
        else:
            await self.queue.ack(reservation)

        return state

    async def run_until_empty(self) -> Dict[str, InvoiceTaskState]:
        """Process tasks, retries included, until nothing is left.

        Returns the final state of every task seen, keyed by task id.
        """
        outcomes: Dict[str, InvoiceTaskState] = {}
        while True:
            reservation = await self.queue.reserve()
            if reservation is None:
                return outcomes
            outcomes[reservation.payload.task_id] = await self._run(reservation)

    async def run_forever(self, stop_event: asyncio.Event, poll_timeout: float = 1.0) -> None:
        logger.info("Invoice worker started")
        while not stop_event.is_set():
            try:
                await self.process_next(poll_timeout)
            except Exception:
                logger.exception("Invoice worker iteration failed")
                await asyncio.sleep(poll_timeout)
        logger.info("Invoice worker stopped")


async def main() -> None:
    setup_logging(settings.DEBUG)
    if not settings.REDIS_URL:
        raise SystemExit("REDIS_URL must be set to run a standalone invoice worker")

    queue = RedisTaskQueue(settings.REDIS_URL, settings.INVOICE_QUEUE_NAME)
    await queue.connect()
    await queue.recover()

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await InvoiceWorker(queue).run_forever(stop_event)
    finally:
        await queue.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
