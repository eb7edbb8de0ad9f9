"""SQLAlchemy models."""
from app.models.tenant import Tenant
from app.models.user import User
from app.models.order import Order
from app.models.order_line_item import OrderLineItem

__all__ = ["Tenant", "User", "Order", "OrderLineItem"]
