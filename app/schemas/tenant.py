"""Tenant schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class TenantResponse(BaseModel):
    """Tenant response schema."""
    id: str
    name: str
    contact_email: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
