"""
Task queues for invoice tasks.

``TaskQueue`` is the interface the order service and the worker depend on.
Two implementations are provided:

- ``InMemoryTaskQueue``: an asyncio queue living inside the API process. Used
  by tests and by single-process deployments without Redis.
- ``RedisTaskQueue``: a pending list plus a processing list in Redis. A task is
  moved atomically to the processing list when reserved and removed only once
  handled, so a crashed worker leaves it behind for :meth:`recover` to put
  back (at-least-once delivery). Reservation times are kept in a sorted set
  so that only reservations idle past a threshold are recovered.
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

import redis.asyncio as aioredis

from app.core.config import settings
from app.core.logging import get_logger
from app.tasks.invoice import InvoiceTaskPayload


logger = get_logger(__name__)


@dataclass
class Reservation:
    """A task taken off the queue by a worker and not yet acknowledged."""
    payload: InvoiceTaskPayload
    raw: Optional[str] = None


@runtime_checkable
class TaskQueue(Protocol):
    async def enqueue(self, payload: InvoiceTaskPayload) -> None:
        """Persist a task for later execution."""
        ...

    async def reserve(self, timeout: float = 0) -> Optional[Reservation]:
        """Take the next task, waiting up to ``timeout`` seconds (0: don't wait)."""
        ...

    async def ack(self, reservation: Reservation) -> None:
        """Drop a task that reached a terminal state."""
        ...

    async def requeue(self, reservation: Reservation) -> None:
        """Put a task back for another attempt, with its updated payload."""
        ...


class InMemoryTaskQueue:
    """In-process queue. Tasks do not survive a restart."""

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[InvoiceTaskPayload]" = asyncio.Queue()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def enqueue(self, payload: InvoiceTaskPayload) -> None:
        await self._queue.put(payload.model_copy())
        logger.info(
            "Invoice task enqueued",
            extra={"task_id": payload.task_id, "order_id": payload.order_id},
        )

    async def reserve(self, timeout: float = 0) -> Optional[Reservation]:
        try:
            if not timeout:
                payload = self._queue.get_nowait()
            else:
                payload = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except (asyncio.QueueEmpty, asyncio.TimeoutError):
            return None
        return Reservation(payload=payload)

    async def ack(self, reservation: Reservation) -> None:
        self._queue.task_done()

    async def requeue(self, reservation: Reservation) -> None:
        self._queue.task_done()
        await self._queue.put(reservation.payload)


class RedisTaskQueue:
    """Redis-backed queue with persisted, at-least-once delivery."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        queue_name: str = "invoice_tasks",
        client: Optional[aioredis.Redis] = None,
    ):
        if client is None and not redis_url:
            raise ValueError("Either redis_url or client is required")
        self._redis_url = redis_url
        self._redis = client
        self.pending_key = queue_name
        self.processing_key = f"{queue_name}:processing"
        self.reserved_key = f"{queue_name}:reserved_at"

    @property
    def client(self) -> aioredis.Redis:
        if self._redis is None:
            raise RuntimeError("RedisTaskQueue is not connected. Call connect() first.")
        return self._redis

    async def connect(self) -> None:
        if self._redis is None:
            self._redis = aioredis.from_url(self._redis_url, decode_responses=True)
        await self._redis.ping()
        logger.info(f"Connected to Redis task queue '{self.pending_key}'")

    async def disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def enqueue(self, payload: InvoiceTaskPayload) -> None:
        await self.client.lpush(self.pending_key, payload.model_dump_json())
        logger.info(
            "Invoice task enqueued",
            extra={"task_id": payload.task_id, "order_id": payload.order_id},
        )

    async def reserve(self, timeout: float = 0) -> Optional[Reservation]:
        if not timeout:
            raw = await self.client.lmove(self.pending_key, self.processing_key, "RIGHT", "LEFT")
        else:
            raw = await self.client.blmove(
                self.pending_key, self.processing_key, timeout, "RIGHT", "LEFT"
            )
        if raw is None:
            return None
        await self.client.zadd(self.reserved_key, {raw: time.time()})
        return Reservation(payload=InvoiceTaskPayload.model_validate_json(raw), raw=raw)

    async def ack(self, reservation: Reservation) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.lrem(self.processing_key, 1, reservation.raw)
            pipe.zrem(self.reserved_key, reservation.raw)
            await pipe.execute()

    async def requeue(self, reservation: Reservation) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.lpush(self.pending_key, reservation.payload.model_dump_json())
            pipe.lrem(self.processing_key, 1, reservation.raw)
            pipe.zrem(self.reserved_key, reservation.raw)
            await pipe.execute()

    async def recover(self, min_idle: Optional[float] = None) -> int:
        """Move reservations idle for at least ``min_idle`` seconds back to pending.

        Reservations held by a live worker are younger than the task timeout
        and are left alone, so this is safe to call while other workers run.
        An entry without a reservation time (its worker died between the move
        and the timestamp) is stamped now and picked up by a later call.

        Returns the number of recovered tasks.
        """
        if min_idle is None:
            min_idle = settings.INVOICE_TASK_RECOVER_IDLE
        cutoff = time.time() - min_idle

        recovered = 0
        for raw in await self.client.lrange(self.processing_key, 0, -1):
            reserved_at = await self.client.zscore(self.reserved_key, raw)
            if reserved_at is None:
                await self.client.zadd(self.reserved_key, {raw: time.time()}, nx=True)
                continue
            if reserved_at > cutoff:
                continue
            # Zero removed means the owning worker acked in the meantime
            if not await self.client.lrem(self.processing_key, 1, raw):
                continue
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.rpush(self.pending_key, raw)
                pipe.zrem(self.reserved_key, raw)
                await pipe.execute()
            recovered += 1

        if recovered:
            logger.warning(f"Recovered {recovered} unacknowledged invoice task(s)")
        return recovered
