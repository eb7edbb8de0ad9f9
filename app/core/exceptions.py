"""
Exceptions raised by the order core.

Synchronous errors (everything under ``OrderError``) propagate to the caller of
``OrderService``; the HTTP layer maps them to status codes. Invoice task errors
are only ever recorded by the worker and never reach the caller that created
the order.
"""


class OrderError(Exception):
    """Base exception for order operations."""


class InvalidOrder(OrderError):
    """Raised when an order cannot be built from the given values."""


class InvalidLineItem(InvalidOrder):
    """
    Raised when a line item has out-of-bound values.

    Only reachable when values slipped past request validation; nothing is
    persisted when this is raised.
    """


class EmptyOrder(InvalidLineItem):
    """Raised when an order has no line items and cannot be persisted."""

    def __init__(self, message: str = "An order requires at least one line item") -> None:
        super().__init__(message)


class OrderCreationFailed(OrderError):
    """
    Raised when persisting an order fails.

    The transaction has been rolled back: neither the order nor any of its
    line items are visible, and no invoice task was enqueued. The original
    database error is chained as ``__cause__``.
    """

    def __init__(self, message: str = "Failed to create order") -> None:
        super().__init__(message)


class OrderNotFound(OrderError):
    """
    Raised when an order does not exist for the actor's tenant.

    Also raised for orders that exist but belong to another tenant, so the
    two cases are indistinguishable to the caller.
    """

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class TenantAccessForbidden(OrderError):
    """Raised when an actor addresses a tenant other than its own."""

    def __init__(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        super().__init__(f"Access to tenant {tenant_id} is forbidden")


class InvoiceTaskError(Exception):
    """Base exception for invoice task failures."""


class TaskRecoverableFailure(InvoiceTaskError):
    """An attempt failed and the task will be re-queued."""


class TaskPermanentFailure(InvoiceTaskError):
    """The attempt ceiling is exhausted; the task will not run again."""
