"""
Pytest configuration and fixtures.

Each test gets a freshly created SQLite database built from the ORM metadata;
the environment below must be in place before any application module is imported.
"""
import asyncio
import os
import tempfile
from decimal import Decimal
from typing import Any, AsyncGenerator

_TEST_DB_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/test.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["OTEL_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PAYMENT_GATEWAY_URL"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from main import app
from services.auth_service.models import User
from services.auth_service.repository import RoleRepository
from services.auth_service.service import AuthService
from services.customer_service.models import Customer
from services.payment_service.gateway import GatewayResult, PaymentGateway
from services.product_service.models import Product
from shared.config.database import AsyncSessionLocal, Base, engine
from shared.security import ADMIN_ROLE, DEFAULT_ROLE, Caller, create_access_token


class FakeGateway(PaymentGateway):
    """Scripted gateway that records every amount it was asked to charge."""

    def __init__(self, success: bool = True, transaction_id: str | None = "TXN_123", delay: float = 0):
        self.success = success
        self.transaction_id = transaction_id
        self.delay = delay
        self.charges: list[Decimal] = []

    async def charge(self, amount: Decimal) -> GatewayResult:
        self.charges.append(amount)
        if self.delay:
            await asyncio.sleep(self.delay)
        return GatewayResult(success=self.success, transaction_id=self.transaction_id)


class Account:
    """A persisted user plus the matching caller identity and bearer token."""

    def __init__(self, user: User, role: str, customer: Customer | None):
        self.user_id = user.id
        self.role = role
        self.customer_id = customer.id if customer else None
        self.caller = Caller(user_id=user.id, role=role, customer_id=self.customer_id)
        self.token = create_access_token({"sub": str(user.id), "role": role})

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, Any]:
    """Recreate all tables and seed the default roles."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as db:
        await RoleRepository.ensure_roles(db, [ADMIN_ROLE, DEFAULT_ROLE])
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db(database) -> AsyncGenerator[AsyncSession, Any]:
    async with AsyncSessionLocal() as session:
        yield session


async def _create_account(
    email: str, role_name: str, with_profile: bool = True, address: str = "Jl. Merdeka 1"
) -> Account:
    async with AsyncSessionLocal() as session:
        role = await RoleRepository.get_by_name(session, role_name)
        user = User(
            name=email.split("@")[0],
            email=email,
            hashed_password=AuthService._hash_password("secret123"),
            role_id=role.id,
        )
        session.add(user)
        await session.flush()
        customer = None
        if with_profile:
            customer = Customer(user_id=user.id, phone_number="0800", address=address)
            session.add(customer)
            await session.flush()
        account = Account(user, role_name, customer)
        await session.commit()
    return account


@pytest_asyncio.fixture
async def alice(database) -> Account:
    return await _create_account("alice@example.com", DEFAULT_ROLE)


@pytest_asyncio.fixture
async def bob(database) -> Account:
    return await _create_account("bob@example.com", DEFAULT_ROLE)


@pytest_asyncio.fixture
async def admin(database) -> Account:
    return await _create_account("admin@example.com", ADMIN_ROLE, with_profile=False)


@pytest_asyncio.fixture
async def catalog(database) -> dict[str, int]:
    """P (10.00) and Q (25.00) are for sale, R (5.00) is not."""
    async with AsyncSessionLocal() as session:
        products = {
            "P": Product(name="Kopi Arabika", price=Decimal("10.00"), is_available=True),
            "Q": Product(name="Teh Melati", price=Decimal("25.00"), is_available=True),
            "R": Product(name="Gula Aren", price=Decimal("5.00"), is_available=False),
        }
        session.add_all(products.values())
        await session.commit()
        return {key: product.id for key, product in products.items()}


@pytest_asyncio.fixture
async def client(database) -> AsyncGenerator[AsyncClient, Any]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
