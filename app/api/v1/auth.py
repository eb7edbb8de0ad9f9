"""Authentication API endpoints."""
from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
import uuid

from app.core.security import (
    verify_password, get_password_hash, create_access_token,
    create_refresh_token, decode_token
)
from app.core.config import settings
from app.core.dependencies import CurrentUser, DbSession, require_role
from app.core.enums import ActorRole
from app.core.logging import get_logger
from app.core.tenancy import Actor
from app.models.tenant import Tenant
from app.models.user import User
from app.schemas.auth import (
    LoginRequest, LoginResponse, TokenResponse, UserResponse,
    RefreshTokenRequest, RegisterRequest, RegisterMemberRequest, RegisterResponse,
)
from app.schemas.tenant import TenantResponse


router = APIRouter()
logger = get_logger(__name__)


def _issue_tokens(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.tenant_id, user.role.value),
        refresh_token=create_refresh_token(user.id, user.tenant_id, user.role.value),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


async def _ensure_email_available(db: DbSession, email: str) -> None:
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered",
        )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: DbSession,
):
    """Register a tenant together with its owner."""
    await _ensure_email_available(db, request.email)

    # The owner's id doubles as the tenant id
    owner_id = str(uuid.uuid4())
    tenant = Tenant(
        id=owner_id,
        name=request.company_name,
        contact_email=request.company_email or request.email,
    )
    user = User(
        id=owner_id,
        tenant_id=owner_id,
        email=request.email,
        hashed_password=get_password_hash(request.password),
        full_name=request.name,
        role=ActorRole.OWNER,
    )
    db.add(tenant)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered",
        )
    await db.refresh(tenant)
    await db.refresh(user)

    logger.info(f"Tenant registered: {tenant.id}", extra={"tenant_id": tenant.id, "user_id": user.id})

    return RegisterResponse(
        user=UserResponse.model_validate(user),
        tenant=TenantResponse.model_validate(tenant),
        tokens=_issue_tokens(user),
    )


@router.post("/members", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_member(
    request: RegisterMemberRequest,
    db: DbSession,
    owner: Actor = Depends(require_role(ActorRole.OWNER)),
):
    """Enroll a member into the owner's tenant."""
    await _ensure_email_available(db, request.email)

    member = User(
        tenant_id=owner.id,
        email=request.email,
        hashed_password=get_password_hash(request.password),
        full_name=request.name,
        role=ActorRole.MEMBER,
    )
    db.add(member)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered",
        )
    await db.refresh(member)

    logger.info(f"Member enrolled: {member.id}", extra={"tenant_id": owner.id, "user_id": member.id})

    return UserResponse.model_validate(member)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: DbSession,
):
    """Authenticate user and return JWT tokens."""
    result = await db.execute(
        select(User).where(User.email == request.email)
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(request.password, user.hashed_password):
        logger.warning(f"Failed login attempt for email: {request.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    # Update last login
    user.last_login = datetime.now(timezone.utc)
    await db.commit()

    logger.info(f"User logged in: {user.id}, tenant: {user.tenant_id}")

    return LoginResponse(
        user=UserResponse.model_validate(user),
        tokens=_issue_tokens(user),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    request: RefreshTokenRequest,
    db: DbSession,
):
    """Refresh access token using a valid refresh token."""
    payload = decode_token(request.refresh_token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    if payload.type != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type. Refresh token required.",
        )

    # Verify user still exists and is active
    result = await db.execute(
        select(User).where(User.id == payload.sub)
    )
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return _issue_tokens(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: CurrentUser,
):
    """Get current authenticated user information."""
    return UserResponse.model_validate(current_user)
