"""Order API endpoints."""
from fastapi import APIRouter, HTTPException, status

from app.core.dependencies import CurrentActor, Orders
from app.core.exceptions import InvalidOrder, OrderCreationFailed, OrderNotFound
from app.core.logging import get_logger
from app.schemas.order import OrderCreateRequest, OrderResponse, OrderListResponse


router = APIRouter()
logger = get_logger(__name__)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: OrderCreateRequest,
    actor: CurrentActor,
    orders: Orders,
):
    """Create an order; invoice generation is scheduled in the background."""
    try:
        order = await orders.create_order(
            actor,
            tax_amount=request.tax_amount,
            notes=request.notes,
            line_items=request.line_items,
        )
    except InvalidOrder as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    except OrderCreationFailed:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order",
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unhandled error in create_order: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order",
        )

    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    actor: CurrentActor,
    orders: Orders,
):
    """List all orders of the current tenant, newest first."""
    tenant_orders = await orders.list_orders(actor)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in tenant_orders],
        count=len(tenant_orders),
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    actor: CurrentActor,
    orders: Orders,
):
    """Get a specific order by ID."""
    try:
        order = await orders.get_order(actor, order_id)
    except OrderNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )

    return OrderResponse.model_validate(order)
