"""
Shared fixtures for the LSCS Core test suite.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lscs_core.core.config import Settings
from lscs_core.core.database import Base
from lscs_core.models import ADMIN_ROLE, Member, MemberRole, Role, Session

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"

ADMIN_EMAIL = "admin@dlsu.edu.ph"
VP_RND_EMAIL = "vp.rnd@dlsu.edu.ph"
CT_RND_EMAIL = "ct.rnd@dlsu.edu.ph"
MEM_EXT_EMAIL = "mem.ext@dlsu.edu.ph"

ACTIVE_SESSION_ID = "a" * 64
EXPIRED_SESSION_ID = "b" * 64


def make_settings(database_url: str = "sqlite+aiosqlite:///:memory:", **overrides) -> Settings:
    values = {
        "DATABASE_URL": database_url,
        "JWT_SECRET": TEST_JWT_SECRET,
        "GOOGLE_CLIENT_ID": "test-client-id.apps.googleusercontent.com",
        "ALLOWED_ORIGINS": "http://localhost:3000",
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_member(member_id: int, email: str, position_id=None, committee_id=None, **extra) -> Member:
    return Member(
        id=member_id,
        email=email,
        full_name=extra.pop("full_name", f"Member {member_id}"),
        position_id=position_id,
        committee_id=committee_id,
        **extra,
    )


def seed_members() -> list[Member]:
    return [
        make_member(1, ADMIN_EMAIL, "MEM", "EXT"),
        make_member(2, VP_RND_EMAIL, "VP", "RND"),
        make_member(3, CT_RND_EMAIL, "CT", "RND"),
        make_member(4, MEM_EXT_EMAIL, "MEM", "EXT"),
    ]


async def create_schema_and_seed(database_url: str) -> None:
    engine = create_async_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    now = datetime.now(timezone.utc)
    async with factory() as db:
        db.add_all(seed_members())
        await db.flush()
        db.add(Role(id=ADMIN_ROLE, description="Administrator"))
        await db.flush()
        db.add(MemberRole(member_id=1, role_id=ADMIN_ROLE))
        db.add_all([
            Session(
                id=ACTIVE_SESSION_ID,
                member_id=3,
                created_at=now,
                expires_at=now + timedelta(hours=20),
                last_activity=now,
            ),
            Session(
                id=EXPIRED_SESSION_ID,
                member_id=3,
                created_at=now - timedelta(days=2),
                expires_at=now - timedelta(days=1),
                last_activity=now - timedelta(days=2),
            ),
        ])
        await db.commit()
    await engine.dispose()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'lscs_test.db'}"


@pytest.fixture
def settings(database_url):
    return make_settings(database_url)


@pytest.fixture
def seeded_database_url(database_url):
    """File-backed sqlite database populated with members, roles and sessions"""
    asyncio.run(create_schema_and_seed(database_url))
    return database_url


@pytest_asyncio.fixture
async def session_factory(database_url):
    """Async session factory over a freshly seeded database"""
    await create_schema_and_seed(database_url)
    engine = create_async_engine(database_url)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def mock_db():
    """Stand-in AsyncSession for services whose repositories are mocked"""
    db = MagicMock(spec=AsyncSession)
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


def mock_session_factory(db=None):
    """async_sessionmaker replacement whose sessions are context managers yielding db"""
    db = db or MagicMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = db
    factory.return_value.__aexit__.return_value = False
    return factory
