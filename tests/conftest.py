"""
Test configuration and fixtures for the SNF SEMI site

Every test gets its own throw-away SQLite file, reconciled by a fresh
SchemaReconciler, and the FastAPI app is pointed at it through
dependency_overrides (get_db / schema_ready).

Usage:
    pytest tests/
"""

import os
import tempfile

# 설정은 import 시점에 읽히므로 앱을 import 하기 전에 환경변수를 고정한다
_TMP_DIR = tempfile.mkdtemp(prefix="snfsemi-tests-")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'default.db')}"
os.environ["COOKIE_SECRET"] = "test-cookie-secret"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "s3cret-pass"
os.environ["DEFAULT_OFFER_PASSWORD"] = "offer-pass"
os.environ["SMTP_HOST"] = ""
os.environ["ADMIN_EMAIL"] = "sales@snfsemi.test"
os.environ["OPERATOR_EMAIL"] = "operator@snfsemi.test"
os.environ.pop("REDIS_URL", None)
os.environ.pop("DATABASE_AUTH_TOKEN", None)

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from snfsemi.core.database import build_engine, get_db
from snfsemi.core.schema import SchemaReconciler, schema_ready
from snfsemi.main import app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"
OFFER_PASSWORD = "offer-pass"


@pytest.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트마다 새 SQLite 파일"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
async def reconciler(db_engine) -> SchemaReconciler:
    reconciler = SchemaReconciler(db_engine)
    await reconciler.ensure()
    return reconciler


@pytest.fixture
def session_factory(db_engine, reconciler):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory, reconciler) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client bound to the per-test database"""

    async def get_test_db():
        async with session_factory() as session:
            yield session

    async def test_schema_ready():
        await reconciler.ensure()

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[schema_ready] = test_schema_ready
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client(client) -> AsyncClient:
    """관리자 로그인까지 마친 클라이언트"""
    resp = await client.post("/admin/login", data={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert resp.status_code == 303
    return client


@pytest.fixture
async def offer_client(client) -> AsyncClient:
    """offers 비밀번호로 로그인한 클라이언트"""
    resp = await client.post("/offers/login", data={"password": OFFER_PASSWORD})
    assert resp.status_code == 303
    return client
