"""Order and tenant API tests."""
import pytest
from httpx import AsyncClient

from app.models.user import User
from app.tasks.queue import InMemoryTaskQueue


ORDER_BODY = {
    "tax_amount": "200.00",
    "notes": "Deliver to loading dock",
    "line_items": [
        {"product_name": "Laptop", "quantity": 2, "unit_price": "1200.00"},
        {"product_name": "Mouse", "quantity": 1, "unit_price": "25.00"},
    ],
}


async def _create(client: AsyncClient, headers: dict, body: dict = ORDER_BODY) -> dict:
    response = await client.post("/api/v1/orders", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_order(client: AsyncClient, auth_headers: dict, test_owner: User, task_queue: InMemoryTaskQueue):
    """Test creating an order computes totals and queues its invoice."""
    data = await _create(client, auth_headers)

    assert data["tenant_id"] == test_owner.id
    assert data["created_by_actor_id"] == test_owner.id
    assert data["order_number"].startswith("ORD-")
    assert data["subtotal"] == "2425.00"
    assert data["tax_amount"] == "200.00"
    assert data["total"] == "2625.00"
    assert {i["product_name"]: i["subtotal"] for i in data["line_items"]} == {
        "Laptop": "2400.00",
        "Mouse": "25.00",
    }
    assert [t.order_id for t in task_queue.enqueued] == [data["id"]]


@pytest.mark.asyncio
async def test_member_order_visible_to_owner(
    client: AsyncClient, auth_headers: dict, member_headers: dict, test_owner: User, test_member: User
):
    data = await _create(client, member_headers)

    assert data["tenant_id"] == test_owner.id
    assert data["created_by_actor_id"] == test_member.id

    response = await client.get(f"/api/v1/orders/{data['id']}", headers=auth_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_orders_is_tenant_scoped(
    client: AsyncClient, auth_headers: dict, other_headers: dict
):
    mine = await _create(client, auth_headers)
    await _create(client, other_headers)

    response = await client.get("/api/v1/orders", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert [o["id"] for o in data["orders"]] == [mine["id"]]


@pytest.mark.asyncio
async def test_get_foreign_order_is_not_found(client: AsyncClient, auth_headers: dict, other_headers: dict):
    foreign = await _create(client, other_headers)

    response = await client.get(f"/api/v1/orders/{foreign['id']}", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Order not found"


@pytest.mark.asyncio
async def test_get_missing_order(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/orders/does-not-exist", headers=auth_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_tenant_orders_for_own_tenant(
    client: AsyncClient, member_headers: dict, test_owner: User
):
    created = await _create(client, member_headers)

    response = await client.get(f"/api/v1/tenants/{test_owner.id}/orders", headers=member_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["tenant"]["id"] == test_owner.id
    assert data["count"] == 1
    assert data["orders"][0]["id"] == created["id"]


@pytest.mark.asyncio
async def test_tenant_orders_for_foreign_tenant_is_forbidden(
    client: AsyncClient, auth_headers: dict, other_owner: User
):
    response = await client.get(f"/api/v1/tenants/{other_owner.id}/orders", headers=auth_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {**ORDER_BODY, "line_items": []},
        {**ORDER_BODY, "tax_amount": "-1.00"},
        {**ORDER_BODY, "line_items": [{"product_name": "Mouse", "quantity": 0, "unit_price": "25.00"}]},
        {**ORDER_BODY, "line_items": [{"product_name": "Mouse", "quantity": 1, "unit_price": "0.00"}]},
        {**ORDER_BODY, "line_items": [{"product_name": "", "quantity": 1, "unit_price": "25.00"}]},
        {**ORDER_BODY, "line_items": [{"product_name": "Mouse", "quantity": 10000, "unit_price": "25.00"}]},
    ],
)
async def test_create_order_validation(
    client: AsyncClient, auth_headers: dict, task_queue: InMemoryTaskQueue, body: dict
):
    """Invalid requests are rejected before anything is persisted."""
    response = await client.post("/api/v1/orders", headers=auth_headers, json=body)

    assert response.status_code == 422
    assert task_queue.enqueued == []

    listing = await client.get("/api/v1/orders", headers=auth_headers)
    assert listing.json()["count"] == 0


@pytest.mark.asyncio
async def test_orders_require_authentication(client: AsyncClient):
    response = await client.get("/api/v1/orders")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
