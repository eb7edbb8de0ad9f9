"""Authentication schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.core.enums import ActorRole
from app.schemas.tenant import TenantResponse


class LoginRequest(BaseModel):
    """Login request schema."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Owner registration: creates the tenant and its first actor."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    company_name: str = Field(..., min_length=1, max_length=255)
    company_email: Optional[EmailStr] = None


class RegisterMemberRequest(BaseModel):
    """Enroll a member into the owner's tenant."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)


class TokenResponse(BaseModel):
    """Token response schema."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class UserResponse(BaseModel):
    """User response schema."""
    id: str
    tenant_id: str
    email: str
    full_name: Optional[str] = None
    role: ActorRole
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    """Login response with user and tokens."""
    user: UserResponse
    tokens: TokenResponse


class RegisterResponse(BaseModel):
    """Registration response with the new tenant."""
    user: UserResponse
    tenant: TenantResponse
    tokens: TokenResponse


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""
    refresh_token: str
