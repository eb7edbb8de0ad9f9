"""Seed data script to populate initial test data."""
import asyncio
import uuid
from decimal import Decimal

from sqlalchemy import select

from app.core.database import async_session_maker, engine, Base
from app.core.security import get_password_hash
from app.core.enums import ActorRole
from app.core.tenancy import Actor
from app.models.tenant import Tenant
from app.models.user import User
from app.services.order_service import OrderService
from app.tasks.queue import InMemoryTaskQueue
from app.tasks.worker import InvoiceWorker


async def seed_data():
    """Seed a demo tenant with an owner, a member and a sample order."""
    async with async_session_maker() as session:
        # Check if data already exists
        result = await session.execute(select(Tenant).limit(1))
        if result.scalar_one_or_none():
            print("Data already seeded. Skipping...")
            return

        owner_id = str(uuid.uuid4())
        tenant = Tenant(
            id=owner_id,
            name="Demo Trading Co",
            contact_email="billing@demo.example.com",
            is_active=True,
        )
        session.add(tenant)
        await session.flush()
        print(f"Created tenant: {tenant.name} (ID: {tenant.id})")

        owner = User(
            id=owner_id,
            tenant_id=tenant.id,
            email="owner@demo.example.com",
            hashed_password=get_password_hash("owner12345"),
            full_name="Demo Owner",
            role=ActorRole.OWNER,
        )
        member = User(
            tenant_id=tenant.id,
            email="member@demo.example.com",
            hashed_password=get_password_hash("member12345"),
            full_name="Demo Member",
            role=ActorRole.MEMBER,
        )
        session.add_all([owner, member])
        await session.commit()
        print("Created users: owner@demo.example.com / owner12345, member@demo.example.com / member12345")

        queue = InMemoryTaskQueue()
        service = OrderService(session, queue)
        order = await service.create_order(
            Actor.from_user(owner),
            tax_amount=Decimal("15.50"),
            notes="Seeded order",
            line_items=[
                {"product_name": "Laptop", "quantity": 2, "unit_price": Decimal("1200.00")},
                {"product_name": "Mouse", "quantity": 1, "unit_price": Decimal("25.00")},
            ],
        )
        print(f"Created order {order.order_number} (total {order.total})")

        await InvoiceWorker(queue).run_until_empty()
        print("Seeding completed!")


async def main():
    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await seed_data()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
