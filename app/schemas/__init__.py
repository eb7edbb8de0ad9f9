"""Pydantic schemas."""
from app.schemas.auth import (
    LoginRequest, LoginResponse, TokenResponse, UserResponse,
    RegisterRequest, RegisterMemberRequest, RegisterResponse, RefreshTokenRequest,
)
from app.schemas.tenant import TenantResponse
from app.schemas.order import (
    LineItemCreate, OrderCreateRequest, OrderLineItemResponse,
    OrderResponse, OrderListResponse, TenantOrdersResponse,
)

__all__ = [
    "LoginRequest", "LoginResponse", "TokenResponse", "UserResponse",
    "RegisterRequest", "RegisterMemberRequest", "RegisterResponse", "RefreshTokenRequest",
    "TenantResponse",
    "LineItemCreate", "OrderCreateRequest", "OrderLineItemResponse",
    "OrderResponse", "OrderListResponse", "TenantOrdersResponse",
]
