"""Background tasks: invoice generation and the queues that carry it."""
from app.tasks.invoice import InvoiceTask, InvoiceTaskPayload, simulate_invoice_generation
from app.tasks.queue import TaskQueue, InMemoryTaskQueue, RedisTaskQueue, Reservation
from app.tasks.worker import InvoiceWorker

__all__ = [
    "InvoiceTask", "InvoiceTaskPayload", "simulate_invoice_generation",
    "TaskQueue", "InMemoryTaskQueue", "RedisTaskQueue", "Reservation",
    "InvoiceWorker",
]
