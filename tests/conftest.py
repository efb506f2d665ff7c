"""
tests/conftest.py
Shared fixtures: fresh in-memory repository per test, in-process Redis
stand-in for the JWT deny-list, HTTP client and seeded accounts.
"""

import os

# Must be set before any application module reads settings
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["REDIS_ENABLED"] = "false"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from decimal import Decimal
from typing import Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.redis_client import get_redis
from main import app
from shared.models.models import Producer, Provider, User, UserType
from shared.repositories.factory import get_repository
from shared.repositories.memory import MemoryRepository
from shared.utils.security import create_access_token, hash_password

TEST_PASSWORD = "password123"


class FakeRedis:
    """Dict-backed subset of the redis.asyncio API used by the app."""

    def __init__(self):
        self.store = {}

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def exists(self, key):
        return int(key in self.store)


# ── Helpers ───────────────────────────────────────────────────

def auth_headers(user: User) -> dict:
    token, _ = create_access_token(user.id, user.user_type, user.email)
    return {"Authorization": f"Bearer {token}"}


async def create_provider_account(
    repo: MemoryRepository, username: str, **profile
) -> Tuple[User, Provider]:
    user = await repo.create_user(
        {
            "username": username,
            "email": f"{username}@example.com",
            "password": hash_password(TEST_PASSWORD),
            "name": username.replace(".", " ").title(),
            "user_type": UserType.PROVIDER.value,
        }
    )
    fields = {"service_type": "drone", "location": "São Paulo, SP", **profile}
    provider = await repo.create_provider({"user_id": user.id, **fields})
    return user, provider


async def create_producer_account(
    repo: MemoryRepository, username: str, **profile
) -> Tuple[User, Producer]:
    user = await repo.create_user(
        {
            "username": username,
            "email": f"{username}@example.com",
            "password": hash_password(TEST_PASSWORD),
            "name": username.replace(".", " ").title(),
            "user_type": UserType.PRODUCER.value,
        }
    )
    fields = {"farm_name": "Fazenda Teste", "location": "Ribeirão Preto, SP", **profile}
    producer = await repo.create_producer({"user_id": user.id, **fields})
    return user, producer


# ── Fixtures ──────────────────────────────────────────────────

@pytest.fixture
def repo() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def client(repo: MemoryRepository, fake_redis: FakeRedis):
    async def _override_repository():
        yield repo

    app.dependency_overrides[get_repository] = _override_repository
    app.dependency_overrides[get_redis] = lambda: fake_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def provider_account(repo: MemoryRepository) -> Tuple[User, Provider]:
    return await create_provider_account(
        repo,
        "carlos.santos",
        specialty="Pulverização Agrícola",
        price_per_hectare=Decimal("35.00"),
        latitude=Decimal("-23.5505"),
        longitude=Decimal("-46.6333"),
        certifications=["ANAC", "Fitossanitário"],
    )


@pytest_asyncio.fixture
async def producer_account(repo: MemoryRepository) -> Tuple[User, Producer]:
    return await create_producer_account(
        repo,
        "joao.silva",
        latitude=Decimal("-21.1775"),
        longitude=Decimal("-47.8100"),
        farm_size=Decimal("150.00"),
        crop_types=["soja", "milho", "cana"],
    )


@pytest.fixture
def provider_user(provider_account) -> User:
    return provider_account[0]


@pytest.fixture
def provider(provider_account) -> Provider:
    return provider_account[1]


@pytest.fixture
def producer_user(producer_account) -> User:
    return producer_account[0]


@pytest.fixture
def producer(producer_account) -> Producer:
    return producer_account[1]
