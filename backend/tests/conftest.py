"""Pytest configuration and fixtures for async testing."""
import json
import os
from datetime import datetime, timedelta
from typing import AsyncGenerator
from uuid import UUID, uuid4

# Settings are read at import time; point them at test backends first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-with-enough-length")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import styloren.models  # noqa: F401  registers tables on Base.metadata
from styloren.cache import InMemoryCache
from styloren.database import Base
from styloren.integrations.ai_gateway import AIGatewayClient
from styloren.integrations.object_storage import ObjectStorageClient
from styloren.services.credit_ledger import CreditLedgerService
from styloren.services.scan_history_service import ScanHistoryService
from styloren.services.styling_service import StylingService

TEST_DATABASE_URL = "sqlite+aiosqlite://"
AI_GATEWAY_URL = "https://ai.test/v1/chat/completions"
STORAGE_URL = "https://storage.test/storage/v1"

# One shared connection so every session sees the same in-memory database
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)

TestAsyncSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

DEFAULT_ANALYSIS = (
    "Overall Style: Casual linen look with clean lines.\n"
    "Style Score: 8\n"
    "**Final Verdict** - Swap the sneakers for loafers."
)


class FakeClock:
    """Controllable naive-UTC clock for the ledger."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeGatewayServer:
    """In-process chat-completion endpoint served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[dict] = []
        self.status_code = 200
        self.content: str | None = DEFAULT_ANALYSIS

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"message": "upstream failure"}})
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": self.content}}]})

    @property
    def last_messages(self) -> list[dict]:
        return self.requests[-1]["messages"]


class FakeStorageServer:
    """In-process object storage REST API for one bucket."""

    def __init__(self, bucket: str = "scan-images"):
        self.bucket = bucket
        self.objects: dict[str, bytes] = {}
        self.fail_uploads = False
        self.fail_signing = False
        self.fail_removal = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/storage/v1")
        sign_prefix = f"/object/sign/{self.bucket}/"
        object_prefix = f"/object/{self.bucket}/"

        if request.method == "POST" and path.startswith(sign_prefix):
            if self.fail_signing:
                return httpx.Response(500, json={"error": "signing failed"})
            key = path.removeprefix(sign_prefix)
            if key not in self.objects:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json={"signedURL": f"/object/sign/{self.bucket}/{key}?token=signed"})

        if request.method == "POST" and path.startswith(object_prefix):
            if self.fail_uploads:
                return httpx.Response(500, json={"error": "upload failed"})
            key = path.removeprefix(object_prefix)
            if key in self.objects:
                return httpx.Response(409, json={"error": "already exists"})
            self.objects[key] = request.content
            return httpx.Response(200, json={"Key": f"{self.bucket}/{key}"})

        if request.method == "DELETE" and path == f"/object/{self.bucket}":
            if self.fail_removal:
                return httpx.Response(500, json={"error": "removal failed"})
            prefixes = json.loads(request.content)["prefixes"]
            removed = [{"name": p} for p in prefixes if self.objects.pop(p, None) is not None]
            return httpx.Response(200, json=removed)

        return httpx.Response(404, json={"error": "unknown route"})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0))


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    Yields:
        AsyncSession: Database session for testing
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestAsyncSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def state_cache() -> InMemoryCache:
    return InMemoryCache(default_ttl=120)


@pytest.fixture
def gateway_server() -> FakeGatewayServer:
    return FakeGatewayServer()


@pytest.fixture
def storage_server() -> FakeStorageServer:
    return FakeStorageServer()


@pytest.fixture
def gateway(gateway_server: FakeGatewayServer) -> AIGatewayClient:
    return AIGatewayClient(
        url=AI_GATEWAY_URL,
        api_key="test-gateway-key",
        model="test-model",
        timeout=5,
        transport=httpx.MockTransport(gateway_server.handler),
    )


@pytest.fixture
def storage(storage_server: FakeStorageServer) -> ObjectStorageClient:
    return ObjectStorageClient(
        base_url=STORAGE_URL,
        service_key="test-service-key",
        bucket=storage_server.bucket,
        transport=httpx.MockTransport(storage_server.handler),
    )


@pytest.fixture
def ledger(db_session: AsyncSession, state_cache: InMemoryCache, clock: FakeClock) -> CreditLedgerService:
    return CreditLedgerService(db_session, cache=state_cache, clock=clock)


@pytest.fixture
def scan_history(db_session: AsyncSession, storage: ObjectStorageClient) -> ScanHistoryService:
    return ScanHistoryService(db_session, storage=storage)


@pytest.fixture
def styling(
    ledger: CreditLedgerService,
    gateway: AIGatewayClient,
    scan_history: ScanHistoryService,
) -> StylingService:
    return StylingService(ledger, gateway, scan_history)


@pytest.fixture
def auth_headers(user_id: UUID) -> dict[str, str]:
    from styloren.auth.jwt import jwt_auth

    token = jwt_auth.create_access_token(user_id, email="stylist.fan@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession,
    state_cache: InMemoryCache,
    gateway: AIGatewayClient,
    storage: ObjectStorageClient,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for the app with test dependencies.

    Yields:
        AsyncClient: Async HTTP client for API testing
    """
    from styloren.api.deps import get_ai_gateway, get_cache, get_db, get_storage
    from styloren.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: state_cache
    app.dependency_overrides[get_ai_gateway] = lambda: gateway
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
