"""Test configuration and fixtures."""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("INVOICE_SIMULATED_DURATION", "0")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.main import app
from app.core.database import Base, build_engine, get_db
from app.core.dependencies import get_task_queue
from app.core.security import get_password_hash, create_access_token
from app.core.enums import ActorRole
from app.core.tenancy import Actor
from app.models.tenant import Tenant
from app.models.user import User
from app.tasks.queue import InMemoryTaskQueue
import uuid


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database and a session on it."""
    test_engine = build_engine(TEST_DATABASE_URL)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


class RecordingTaskQueue(InMemoryTaskQueue):
    """In-process queue that also keeps a copy of every enqueued payload."""

    def __init__(self) -> None:
        super().__init__()
        self.enqueued = []

    async def enqueue(self, payload) -> None:
        self.enqueued.append(payload.model_copy())
        await super().enqueue(payload)


@pytest.fixture
def task_queue() -> RecordingTaskQueue:
    """Invoice queue; nothing consumes it unless a test runs a worker."""
    return RecordingTaskQueue()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, task_queue: InMemoryTaskQueue) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and queue overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_task_queue] = lambda: task_queue

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _create_owner(db_session: AsyncSession, name: str, email: str) -> User:
    owner_id = str(uuid.uuid4())
    tenant = Tenant(id=owner_id, name=name, contact_email=f"billing-{email}", is_active=True)
    owner = User(
        id=owner_id,
        tenant_id=owner_id,
        email=email,
        hashed_password=get_password_hash("testpassword"),
        full_name=f"{name} Owner",
        role=ActorRole.OWNER,
        is_active=True,
    )
    db_session.add_all([tenant, owner])
    await db_session.commit()
    await db_session.refresh(owner)
    return owner


@pytest_asyncio.fixture
async def test_owner(db_session: AsyncSession) -> User:
    """Owner of the test tenant; the owner's id is the tenant id."""
    return await _create_owner(db_session, "Acme Corp", "owner@acme.example.com")


@pytest_asyncio.fixture
async def test_member(db_session: AsyncSession, test_owner: User) -> User:
    """Member enrolled into the test owner's tenant."""
    member = User(
        id=str(uuid.uuid4()),
        tenant_id=test_owner.id,
        email="member@acme.example.com",
        hashed_password=get_password_hash("testpassword"),
        full_name="Acme Member",
        role=ActorRole.MEMBER,
        is_active=True,
    )
    db_session.add(member)
    await db_session.commit()
    await db_session.refresh(member)
    return member


@pytest_asyncio.fixture
async def other_owner(db_session: AsyncSession) -> User:
    """Owner of an unrelated tenant."""
    return await _create_owner(db_session, "Globex", "owner@globex.example.com")


@pytest.fixture
def owner_actor(test_owner: User) -> Actor:
    return Actor.from_user(test_owner)


@pytest.fixture
def member_actor(test_member: User) -> Actor:
    return Actor.from_user(test_member)


@pytest.fixture
def other_actor(other_owner: User) -> Actor:
    return Actor.from_user(other_owner)


def _auth_headers(user: User) -> dict:
    token = create_access_token(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role.value,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_owner: User) -> dict:
    """Create authorization headers with valid token."""
    return _auth_headers(test_owner)


@pytest.fixture
def member_headers(test_member: User) -> dict:
    return _auth_headers(test_member)


@pytest.fixture
def other_headers(other_owner: User) -> dict:
    return _auth_headers(other_owner)
