"""API v1 router."""
from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.orders import router as orders_router
from app.api.v1.tenants import router as tenants_router


router = APIRouter(prefix="/v1")

router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
router.include_router(orders_router, prefix="/orders", tags=["Orders"])
router.include_router(tenants_router, prefix="/tenants", tags=["Tenants"])
