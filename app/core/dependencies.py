"""Application dependencies for dependency injection."""
from typing import Annotated
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.database import get_db
from app.core.enums import ActorRole
from app.core.security import decode_token, TokenPayload
from app.core.logging import get_logger
from app.core.tenancy import Actor
from app.models.user import User
from app.models.tenant import Tenant
from app.services.order_service import OrderService
from app.tasks.queue import TaskQueue


security = HTTPBearer()
logger = get_logger(__name__)


async def get_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Validate and decode the JWT token from the Authorization header."""
    token = credentials.credentials
    payload = decode_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type. Access token required.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


async def get_current_user(
    token: TokenPayload = Depends(get_current_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get the current authenticated user."""
    result = await db.execute(
        select(User).where(User.id == token.sub)
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive",
        )

    return user


async def validate_tenant(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Tenant:
    """Validate that the user's tenant exists and is active."""
    result = await db.execute(
        select(Tenant).where(Tenant.id == user.tenant_id)
    )
    tenant = result.scalar_one_or_none()

    if tenant is None or not tenant.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant not found or inactive",
        )

    return tenant


async def get_current_actor(
    user: User = Depends(get_current_user),
    tenant: Tenant = Depends(validate_tenant),
) -> Actor:
    """Resolve the authenticated user into the actor passed to the order core."""
    return Actor.from_user(user)


def get_task_queue(request: Request) -> TaskQueue:
    """The invoice queue created during application startup."""
    queue = getattr(request.app.state, "task_queue", None)
    if queue is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task queue is not available",
        )
    return queue


def get_order_service(
    db: AsyncSession = Depends(get_db),
    task_queue: TaskQueue = Depends(get_task_queue),
) -> OrderService:
    return OrderService(db, task_queue)


# Type aliases for cleaner dependency injection
CurrentToken = Annotated[TokenPayload, Depends(get_current_token)]
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentTenant = Annotated[Tenant, Depends(validate_tenant)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Orders = Annotated[OrderService, Depends(get_order_service)]


def require_role(*roles: ActorRole):
    """Dependency factory to require specific roles."""
    async def role_checker(actor: CurrentActor) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{actor.role.value}' not authorized. Required: {[r.value for r in roles]}",
            )
        return actor
    return role_checker
