"""OrderLineItem model."""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from sqlalchemy import String, Integer, DateTime, ForeignKey, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
import uuid

from app.core.database import Base
from app.core.exceptions import InvalidLineItem


CENT = Decimal("0.01")


def quantize_money(value) -> Decimal:
    """Convert ``value`` to a Decimal rounded to 2 places."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidLineItem(f"Quantity must be a whole number, got {quantity!r}")
    if quantity < 1:
        raise InvalidLineItem(f"Quantity must be at least 1, got {quantity}")
    return quantity


def validate_unit_price(unit_price) -> Decimal:
    try:
        price = quantize_money(unit_price)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidLineItem(f"Unit price must be a number, got {unit_price!r}")
    if not price.is_finite() or price < 0:
        raise InvalidLineItem(f"Unit price cannot be negative, got {unit_price}")
    return price


class OrderLineItem(Base):
    """A single product line of an order.

    ``subtotal`` is derived from quantity and unit price and is only ever
    written by :meth:`reprice`. Line items are created through
    :meth:`app.models.order.Order.add_line_item`, never on their own.
    """

    __tablename__ = "order_line_items"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    order_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
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
    order = relationship("Order", back_populates="line_items")

    __table_args__ = (
        Index("ix_order_line_item_order_created", "order_id", "created_at"),
    )

    @classmethod
    def build(cls, product_name: str, quantity: int, unit_price) -> "OrderLineItem":
        if not product_name or not str(product_name).strip():
            raise InvalidLineItem("Product name is required")
        item = cls(id=str(uuid.uuid4()), product_name=product_name)
        item.reprice(quantity=quantity, unit_price=unit_price)
        return item

    def reprice(self, quantity=None, unit_price=None) -> None:
        """Change quantity and/or unit price and recompute the subtotal."""
        new_quantity = validate_quantity(self.quantity if quantity is None else quantity)
        new_price = validate_unit_price(self.unit_price if unit_price is None else unit_price)
        self.quantity = new_quantity
        self.unit_price = new_price
        self.subtotal = quantize_money(new_price * new_quantity)
