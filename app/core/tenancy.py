"""Tenant resolution for authenticated actors."""
from dataclasses import dataclass
from typing import Optional

from app.core.enums import ActorRole


@dataclass(frozen=True)
class Actor:
    """An authenticated individual performing an operation.

    Built by the auth layer and passed explicitly into every core operation.
    """
    id: str
    role: ActorRole
    tenant_id: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Actor id is required")
        if not isinstance(self.role, ActorRole):
            object.__setattr__(self, "role", ActorRole(self.role))
        if self.role is ActorRole.MEMBER and not self.tenant_id:
            raise ValueError("A member actor must be enrolled into a tenant")

    @classmethod
    def from_user(cls, user) -> "Actor":
        """Build an actor from a persisted user."""
        return cls(id=user.id, role=ActorRole(user.role), tenant_id=user.tenant_id)


def effective_tenant_id(actor: Actor) -> str:
    """Return the tenant id that scopes every read and write of ``actor``."""
    if actor.role is ActorRole.OWNER:
        return actor.id
    elif actor.role is ActorRole.MEMBER:
        return actor.tenant_id
    raise ValueError(f"Unhandled actor role: {actor.role!r}")
