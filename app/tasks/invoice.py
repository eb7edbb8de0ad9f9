"""
Invoice generation task.

A task is created for every committed order and executed by a worker, away
from the request that created the order. Each attempt is bounded by a
timeout; failed attempts are re-queued immediately until the attempt ceiling
is reached, after which the task is marked as permanently failed. The order
itself is never touched by this module: invoice generation is best-effort.

State machine::

    QUEUED -> PROCESSING -> COMPLETED
                        \\-> QUEUED            (recoverable failure)
                        \\-> FAILED_PERMANENT  (ceiling exhausted)
"""
import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Awaitable, Callable, Optional
import uuid

from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.enums import InvoiceTaskState
from app.core.exceptions import TaskRecoverableFailure, TaskPermanentFailure
from app.core.logging import get_logger


logger = get_logger(__name__)


class InvoiceTaskPayload(BaseModel):
    """Serializable invoice task, as stored on the queue."""
    task_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    order_id: str
    order_number: str
    total: Decimal
    tenant_id: str
    actor_id: str
    attempts: int = 0
    state: InvoiceTaskState = InvoiceTaskState.QUEUED
    last_error: Optional[str] = None
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_order(cls, order) -> "InvoiceTaskPayload":
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            total=order.total,
            tenant_id=order.tenant_id,
            actor_id=order.created_by_actor_id,
        )


InvoiceAction = Callable[[InvoiceTaskPayload], Awaitable[None]]


async def simulate_invoice_generation(payload: InvoiceTaskPayload) -> None:
    """Stand-in for PDF rendering, storage and notification."""
    await asyncio.sleep(settings.INVOICE_SIMULATED_DURATION)
    logger.info(
        "Invoice generation process completed",
        extra={
            "order_id": payload.order_id,
            "invoice_number": f"INV-{payload.order_number}",
            "total": payload.total,
        },
    )


class InvoiceTask:
    """Executes one attempt of an invoice task and decides what happens next."""

    def __init__(
        self,
        action: InvoiceAction = simulate_invoice_generation,
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.action = action
        self.max_attempts = max_attempts or settings.INVOICE_TASK_MAX_ATTEMPTS
        self.timeout = timeout if timeout is not None else settings.INVOICE_TASK_TIMEOUT

    async def handle(self, payload: InvoiceTaskPayload) -> InvoiceTaskState:
        """Run one attempt and return the resulting state.

        ``payload`` is updated in place (attempt counter, state, last error).
        A payload that already reached a terminal state is left untouched,
        which makes duplicate deliveries harmless.
        """
        if payload.state.is_terminal:
            logger.info(
                "Skipping invoice task in terminal state",
                extra={"task_id": payload.task_id, "order_id": payload.order_id},
            )
            return payload.state

        payload.attempts += 1
        payload.state = InvoiceTaskState.PROCESSING

        try:
            await asyncio.wait_for(self.action(payload), timeout=self.timeout)
        except asyncio.TimeoutError:
            return self._fail(
                payload,
                TaskRecoverableFailure(f"Invoice generation timed out after {self.timeout}s"),
            )
        except Exception as e:
            return self._fail(payload, e)

        payload.state = InvoiceTaskState.COMPLETED
        payload.last_error = None
        logger.info(
            "Invoice generated successfully",
            extra={**self._record(payload), "event": "invoice.generated"},
        )
        return payload.state

    def _fail(self, payload: InvoiceTaskPayload, exc: Exception) -> InvoiceTaskState:
        error = f"{type(exc).__name__}: {exc}"
        payload.last_error = error
        logger.warning(
            "Failed to generate invoice",
            exc_info=exc,
            extra={**self._record(payload), "event": "invoice.attempt_failed", "error": error},
        )

        if payload.attempts < self.max_attempts:
            payload.state = InvoiceTaskState.QUEUED
            return payload.state

        payload.state = InvoiceTaskState.FAILED_PERMANENT
        permanent = TaskPermanentFailure(
            f"Gave up after {payload.attempts} attempts; last error: {error}"
        )
        logger.error(
            "Invoice generation job failed permanently",
            extra={
                **self._record(payload),
                "event": "invoice.failed_permanently",
                "error": str(permanent),
            },
        )
        return payload.state

    def _record(self, payload: InvoiceTaskPayload) -> dict:
        return {
            "task_id": payload.task_id,
            "order_id": payload.order_id,
            "order_number": payload.order_number,
            "total": payload.total,
            "tenant_id": payload.tenant_id,
            "actor_id": payload.actor_id,
            "attempt": payload.attempts,
            "max_attempts": self.max_attempts,
        }
