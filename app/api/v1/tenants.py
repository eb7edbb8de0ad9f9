"""Tenant API endpoints."""
from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.core.dependencies import CurrentActor, DbSession, Orders
from app.core.exceptions import TenantAccessForbidden
from app.models.tenant import Tenant
from app.schemas.order import OrderResponse, TenantOrdersResponse
from app.schemas.tenant import TenantResponse


router = APIRouter()


@router.get("/{tenant_id}/orders", response_model=TenantOrdersResponse)
async def list_tenant_orders(
    tenant_id: str,
    actor: CurrentActor,
    db: DbSession,
    orders: Orders,
):
    """List the orders of a tenant. Only the actor's own tenant is allowed."""
    try:
        tenant_orders = await orders.list_orders_for_tenant(actor, tenant_id)
    except TenantAccessForbidden:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden. You can only access orders of your own tenant.",
        )

    result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
    tenant = result.scalar_one_or_none()
    if tenant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found",
        )

    return TenantOrdersResponse(
        tenant=TenantResponse.model_validate(tenant),
        orders=[OrderResponse.model_validate(o) for o in tenant_orders],
        count=len(tenant_orders),
    )
