"""Tenant resolution tests."""
import pytest

from app.core.enums import ActorRole
from app.core.tenancy import Actor, effective_tenant_id


def test_owner_scopes_to_own_id():
    """An owner's tenant is the owner itself."""
    owner = Actor(id="owner-1", role=ActorRole.OWNER)

    assert effective_tenant_id(owner) == "owner-1"


def test_owner_tenant_id_field_is_ignored():
    owner = Actor(id="owner-1", role=ActorRole.OWNER, tenant_id="something-else")

    assert effective_tenant_id(owner) == "owner-1"


def test_member_scopes_to_enrolling_owner():
    """A member acts on behalf of the owner that enrolled them."""
    member = Actor(id="member-1", role=ActorRole.MEMBER, tenant_id="owner-1")

    assert effective_tenant_id(member) == "owner-1"


def test_member_without_tenant_is_rejected():
    with pytest.raises(ValueError):
        Actor(id="member-1", role=ActorRole.MEMBER)


def test_actor_id_required():
    with pytest.raises(ValueError):
        Actor(id="", role=ActorRole.OWNER)


def test_role_is_coerced_from_string():
    actor = Actor(id="member-1", role="MEMBER", tenant_id="owner-1")

    assert actor.role is ActorRole.MEMBER


def test_unknown_role_is_rejected():
    with pytest.raises(ValueError):
        Actor(id="x", role="ADMIN")


def test_from_user():
    class _User:
        id = "member-1"
        role = ActorRole.MEMBER
        tenant_id = "owner-1"

    actor = Actor.from_user(_User())

    assert actor == Actor(id="member-1", role=ActorRole.MEMBER, tenant_id="owner-1")
    assert effective_tenant_id(actor) == "owner-1"
