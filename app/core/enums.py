"""Enum definitions for the application."""
from enum import Enum


class ActorRole(str, Enum):
    """Role of an actor within its tenant.

    An OWNER's own id doubles as the tenant id; a MEMBER is enrolled into
    an owner's tenant.
    """
    OWNER = "OWNER"
    MEMBER = "MEMBER"


class InvoiceTaskState(str, Enum):
    """Lifecycle of an invoice-generation task."""
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED_PERMANENT = "FAILED_PERMANENT"

    @property
    def is_terminal(self) -> bool:
        return self in (InvoiceTaskState.COMPLETED, InvoiceTaskState.FAILED_PERMANENT)
