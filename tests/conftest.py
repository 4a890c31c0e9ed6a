import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(), "settleup-test.db")
os.environ["JWT_SECRET"] = "test-secret"
os.environ.pop("AUTH_ISSUER", None)
os.environ.pop("AUTH_AUDIENCE", None)

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from settleup.core.security import create_access_token
from settleup.db.base import Base
from settleup.models.group_member import GroupMember
from settleup.db.session import async_session, engine
from settleup.main import app
from settleup.schemas.group import GroupMemberCreate
from settleup.services.group_services import add_member, create_group


def auth_headers(user_id: str, email: str = None) -> dict:
    claims = {"sub": user_id}
    if email:
        claims["email"] = email
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest_asyncio.fixture
async def db_engine():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(db_engine):
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_engine):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def trio(db):
    """Group owned by alice with bob and carol; returns (group, {name: member})."""
    group = await create_group(db, "Cabin trip", "user-alice", "Alice")
    await add_member(db, group.id, "user-alice", GroupMemberCreate(display_name="Bob", user_id="user-bob"))
    await add_member(db, group.id, "user-alice", GroupMemberCreate(display_name="Carol", email="carol@example.com"))

    rows = (await db.execute(select(GroupMember).where(GroupMember.group_id == group.id))).scalars().all()
    return group, {m.display_name: m for m in rows}
