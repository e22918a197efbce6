# tests/conftest.py
import asyncio
import os
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update

# ---- 測試期環境變數（先於 app 載入）----
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("ENV", "test")

from app.main import app  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import AsyncSessionLocal, engine  # noqa: E402
from app.models.users import User  # noqa: E402

PASSWORD = "secret123"


@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    """測試前重建 schema，測試後 drop_all（用 asyncio.run 避免事件圈衝突）。"""
    async def reset_models():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    async def drop_models():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    asyncio.run(reset_models())
    yield
    asyncio.run(drop_models())


@pytest_asyncio.fixture
async def client():
    """使用 ASGITransport 直接掛載 app，不需啟動伺服器。"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    async with AsyncSessionLocal() as session:
        yield session


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}@example.com"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, name: str, email: str, password: str = PASSWORD):
    r = await client.post("/api/v1/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    return r.json()


async def login(client: AsyncClient, email: str, password: str = PASSWORD) -> str:
    r = await client.post("/api/v1/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


async def register_and_login(client: AsyncClient, name: str = "User", admin: bool = False):
    """建立帳號並登入，回傳 (user_json, token)。"""
    email = unique_email(name.lower())
    user = await register(client, name, email)
    if admin:
        await promote_to_admin(user["id"])
        user["is_admin"] = True
    return user, await login(client, email)


async def promote_to_admin(user_id: int) -> None:
    # admin 只能由後台動作設定，測試直接改 DB
    async with AsyncSessionLocal() as session:
        await session.execute(update(User).where(User.id == user_id).values(is_admin=True))
        await session.commit()
