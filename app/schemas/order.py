"""Order schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field

from app.schemas.tenant import TenantResponse


class LineItemCreate(BaseModel):
    """A line item in an order creation request."""
    product_name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=1, le=9999)
    unit_price: Decimal = Field(..., ge=Decimal("0.01"), le=Decimal("999999.99"), decimal_places=2)


class OrderCreateRequest(BaseModel):
    """Request to create an order."""
    tax_amount: Decimal = Field(..., ge=0, le=Decimal("999999.99"), decimal_places=2)
    notes: Optional[str] = Field(None, max_length=1000)
    line_items: List[LineItemCreate] = Field(..., min_length=1)


class OrderLineItemResponse(BaseModel):
    """Order line item response schema."""
    id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Order response schema."""
    id: str
    order_number: str
    tenant_id: str
    created_by_actor_id: str
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    notes: Optional[str] = None
    line_items: List[OrderLineItemResponse]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    """List of orders response."""
    orders: List[OrderResponse]
    count: int


class TenantOrdersResponse(BaseModel):
    """Orders of a tenant, with the tenant itself."""
    tenant: TenantResponse
    orders: List[OrderResponse]
    count: int
