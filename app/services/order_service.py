"""Order service: creation and tenant-scoped retrieval of orders."""
from typing import Any, Iterable, List, NamedTuple, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import OrderCreationFailed, OrderNotFound, TenantAccessForbidden
from app.core.logging import get_logger
from app.core.tenancy import Actor, effective_tenant_id
from app.models.order import Order, generate_order_number
from app.tasks.invoice import InvoiceTaskPayload
from app.tasks.queue import TaskQueue


logger = get_logger(__name__)


class LineItemInput(NamedTuple):
    product_name: str
    quantity: int
    unit_price: Any


def _line_item_fields(item) -> LineItemInput:
    if isinstance(item, dict):
        return LineItemInput(item["product_name"], item["quantity"], item["unit_price"])
    return LineItemInput(item.product_name, item.quantity, item.unit_price)


class OrderService:
    """Creates and reads orders on behalf of an actor.

    Every operation takes the actor explicitly and scopes its reads and
    writes to ``effective_tenant_id(actor)``.
    """

    def __init__(self, db: AsyncSession, task_queue: TaskQueue):
        self.db = db
        self.task_queue = task_queue

    async def create_order(
        self,
        actor: Actor,
        tax_amount,
        notes: Optional[str],
        line_items: Iterable,
    ) -> Order:
        """
        Create an order with its line items and schedule invoice generation.

        The order and all of its line items are committed in one transaction.
        Exactly one invoice task is enqueued, and only after the commit
        succeeded.

        Raises:
            InvalidOrder / InvalidLineItem: the values cannot form a valid order
                (including an empty ``line_items``). Nothing is persisted.
            OrderCreationFailed: persisting failed and was rolled back.
        """
        tenant_id = effective_tenant_id(actor)

        order = Order.new(
            tenant_id=tenant_id,
            created_by_actor_id=actor.id,
            tax_amount=tax_amount,
            notes=notes,
        )
        for item in line_items:
            order.add_line_item(*_line_item_fields(item))
        order.ensure_ready_to_persist()

        try:
            order.order_number = await self._claim_order_number(order.order_number)
            self.db.add(order)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(
                f"Failed to persist order: {type(e).__name__}",
                extra={"tenant_id": tenant_id, "user_id": actor.id},
            )
            raise OrderCreationFailed() from e

        logger.info(
            f"Order created: {order.id}",
            extra={
                "order_id": order.id,
                "order_number": order.order_number,
                "total": order.total,
                "tenant_id": tenant_id,
                "user_id": actor.id,
            },
        )

        await self._dispatch_invoice(order)
        return order

    async def get_order(self, actor: Actor, order_id: str) -> Order:
        """Return one order of the actor's tenant; foreign orders look missing."""
        result = await self.db.execute(
            select(Order).where(
                Order.id == order_id,
                Order.tenant_id == effective_tenant_id(actor),
            )
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def list_orders(self, actor: Actor) -> List[Order]:
        """All orders of the actor's tenant, newest first."""
        return await self._orders_for_tenant(effective_tenant_id(actor))

    async def list_orders_for_tenant(self, actor: Actor, tenant_id: str) -> List[Order]:
        """Orders of ``tenant_id``, which must be the actor's own tenant."""
        if tenant_id != effective_tenant_id(actor):
            logger.warning(
                f"Actor {actor.id} denied access to orders of tenant {tenant_id}",
                extra={"user_id": actor.id, "tenant_id": tenant_id},
            )
            raise TenantAccessForbidden(tenant_id)
        return await self._orders_for_tenant(tenant_id)

    async def _orders_for_tenant(self, tenant_id: str) -> List[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.tenant_id == tenant_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def _claim_order_number(self, candidate: str) -> str:
        # The unique constraint still guards against a concurrent insert of the same number
        for _ in range(settings.ORDER_NUMBER_MAX_ATTEMPTS):
            taken = await self.db.scalar(
                select(Order.id).where(Order.order_number == candidate)
            )
            if taken is None:
                return candidate
            logger.warning(f"Order number {candidate} already in use, generating another")
            candidate = generate_order_number()
        raise OrderCreationFailed("Could not allocate a unique order number")

    async def _dispatch_invoice(self, order: Order) -> None:
        payload = InvoiceTaskPayload.for_order(order)
        try:
            await self.task_queue.enqueue(payload)
        except Exception:
            # The order is committed and stays valid; invoicing is best-effort
            logger.exception(
                "Failed to enqueue invoice task",
                extra={
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "tenant_id": order.tenant_id,
                },
            )
