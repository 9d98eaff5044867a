import os

# Settings are read at import time by app.main; the required secrets must be
# present before anything from `app` is imported.
os.environ["JWT_SECRET"] = "test-secret"
os.environ["TWILIO_ACCOUNT_SID"] = "ACtest"
os.environ["TWILIO_AUTH_TOKEN"] = "test-token"
os.environ["TWILIO_VERIFY_SERVICE_SID"] = "VAtest"
os.environ["TWILIO_PHONE_NUMBER"] = "+15005550006"
os.environ["IDENTITY_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"

from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.dependencies import get_gateway, get_redis
from app.auth.models import User  # noqa: F401 - register with Base
from app.config import Settings, get_settings
from app.database import get_db
from app.main import app
from app.permissions.models import Permission  # noqa: F401 - register with Base
from app.sms.twilio import GatewayResult
from shared.database.postgres import Base, get_session

TEST_DATABASE_URL = "sqlite+aiosqlite://"
VALID_CODE = "123456"


class FakeGateway:
    """Stands in for Twilio: every requested code is VALID_CODE."""

    def __init__(self) -> None:
        self.pending: set[str] = set()
        self.requested: list[str] = []
        self.messages: list[tuple[str, str]] = []
        self.send_error: str | None = None
        self.check_error: str | None = None
        self.message_result: bool = True
        self.message_raises: bool = False

    async def request_code(self, phone_digits: str) -> GatewayResult:
        if self.send_error:
            return GatewayResult(success=False, error=self.send_error)
        self.requested.append(phone_digits)
        self.pending.add(phone_digits)
        return GatewayResult(success=True, status="pending")

    async def check_code(self, phone_digits: str, code: str) -> GatewayResult:
        if self.check_error:
            return GatewayResult(success=False, error=self.check_error)
        if phone_digits in self.pending and code == VALID_CODE:
            self.pending.discard(phone_digits)
            return GatewayResult(success=True, status="approved")
        return GatewayResult(success=False, status="pending", error="Invalid OTP")

    async def send_message(self, phone_digits: str, body: str) -> bool:
        if self.message_raises:
            raise RuntimeError("messaging down")
        self.messages.append((phone_digits, body))
        return self.message_result


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def redis() -> AsyncGenerator[fake_aioredis.FakeRedis, None]:
    client = fake_aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest_asyncio.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    redis: fake_aioredis.FakeRedis,
    gateway: FakeGateway,
) -> AsyncGenerator[AsyncClient, None]:
    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        async for session in get_session(session_factory):
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_gateway] = lambda: gateway
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
