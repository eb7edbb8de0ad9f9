"""Order model and aggregate behaviour."""
from datetime import datetime, timezone, date
from decimal import Decimal, InvalidOperation
from typing import Optional
import secrets
import string
import uuid

from sqlalchemy import String, DateTime, ForeignKey, Numeric, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.core.config import settings
from app.core.database import Base
from app.core.exceptions import InvalidOrder, EmptyOrder
from app.models.order_line_item import OrderLineItem, quantize_money


ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_SUFFIX_LENGTH = 4


def generate_order_number(prefix: Optional[str] = None, today: Optional[date] = None) -> str:
    """Generate an order number such as ``ORD-20250101-7QK2``."""
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    today = today or datetime.now(timezone.utc).date()
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(ORDER_NUMBER_SUFFIX_LENGTH))
    return f"{prefix}-{today:%Y%m%d}-{suffix}"


class Order(Base):
    """Order model: one order plus its line items.

    Totals are kept consistent by the aggregate methods below; nothing is
    recomputed implicitly on flush.
    """

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    created_by_actor_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    order_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    tenant = relationship("Tenant", back_populates="orders")
    created_by = relationship("User", back_populates="created_orders")
    line_items = relationship(
        "OrderLineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineItem.created_at",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_order_tenant_created", "tenant_id", "created_at"),
        Index("ix_order_actor_created", "created_by_actor_id", "created_at"),
    )

    @validates("tenant_id")
    def _validate_tenant_id(self, key, value):
        if self.tenant_id is not None and value != self.tenant_id:
            raise ValueError("An order's tenant cannot be reassigned")
        return value

    @classmethod
    def new(
        cls,
        tenant_id: str,
        created_by_actor_id: str,
        tax_amount,
        notes: Optional[str] = None,
        order_number: Optional[str] = None,
    ) -> "Order":
        """Start an empty order; line items are added with :meth:`add_line_item`."""
        try:
            tax = quantize_money(tax_amount)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidOrder(f"Tax amount must be a number, got {tax_amount!r}")
        if not tax.is_finite() or tax < 0:
            raise InvalidOrder(f"Tax amount cannot be negative, got {tax_amount}")

        return cls(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            created_by_actor_id=created_by_actor_id,
            order_number=order_number or generate_order_number(),
            subtotal=Decimal("0.00"),
            tax_amount=tax,
            total=tax,
            notes=notes,
            line_items=[],
        )

    def add_line_item(self, product_name: str, quantity: int, unit_price) -> OrderLineItem:
        item = OrderLineItem.build(product_name, quantity, unit_price)
        self.line_items.append(item)
        self.recalculate_totals()
        return item

    def update_line_item(self, item: OrderLineItem, quantity=None, unit_price=None) -> OrderLineItem:
        if item not in self.line_items:
            raise InvalidOrder("Line item does not belong to this order")
        item.reprice(quantity=quantity, unit_price=unit_price)
        self.recalculate_totals()
        return item

    def recalculate_totals(self) -> None:
        self.subtotal = quantize_money(sum((i.subtotal for i in self.line_items), Decimal("0")))
        self.total = quantize_money(self.subtotal + self.tax_amount)

    def ensure_ready_to_persist(self) -> None:
        if not self.line_items:
            raise EmptyOrder()
