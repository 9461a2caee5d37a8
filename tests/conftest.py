"""Shared test fixtures.

Tests run against a file-backed SQLite database (one per test) so that
concurrent sessions really contend for the same rows. Identity-provider
tokens are signed with a throwaway RSA key generated once per session.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ecotrack.auth.jwt import reset_keys
from ecotrack.config import get_settings
from ecotrack.database import close_db, get_engine, get_session_factory, init_db
from ecotrack.db.base import Base
from ecotrack.db.models import Action, User
from ecotrack.gamification.events import ActionCreatedEvent
from ecotrack.gamification.seed import seed_badges, seed_tips
from ecotrack.redis_client import close_redis

TEST_ISSUER = "https://identity.test"


def _sqlite_pragmas(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=10000")
    cursor.close()


@pytest.fixture(scope="session")
def rsa_keypair(tmp_path_factory: pytest.TempPathFactory) -> tuple[bytes, str]:
    """(private PEM, public key path) for signing test tokens."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    public_path = tmp_path_factory.mktemp("keys") / "idp_public.pem"
    public_path.write_bytes(public_pem)
    return private_pem, str(public_path)


@pytest.fixture(autouse=True)
def eco_settings(monkeypatch: pytest.MonkeyPatch, tmp_path, rsa_keypair) -> Any:
    """Point settings at a per-test SQLite file and the test signing key."""
    _, public_path = rsa_keypair
    monkeypatch.setenv("ECO_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'ecotrack.db'}")
    monkeypatch.setenv("ECO_JWT_PUBLIC_KEY_PATH", public_path)
    monkeypatch.setenv("ECO_JWT_ISSUER", TEST_ISSUER)
    monkeypatch.setenv("ECO_LOG_FORMAT", "console")
    get_settings.cache_clear()
    reset_keys()
    yield get_settings()
    get_settings.cache_clear()
    reset_keys()


@pytest.fixture
def make_token(rsa_keypair):
    """Build a signed identity-provider token for a user id."""
    private_pem, _ = rsa_keypair

    def _make(sub: str | None = "user-1", expires_in: int = 3600, **claims: Any) -> str:
        payload: dict[str, Any] = {
            "iss": TEST_ISSUER,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
            **claims,
        }
        if sub is not None:
            payload["sub"] = sub
        return jwt.encode(payload, private_pem, algorithm="RS256")

    return _make


@pytest_asyncio.fixture
async def session_factory(eco_settings) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Initialized database with the full schema."""
    await init_db(eco_settings.database_url)
    engine = get_engine()
    event.listen(engine.sync_engine, "connect", _sqlite_pragmas)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield get_session_factory()
    await close_db()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for setup and assertions."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """Session with the badge and tip catalogs seeded."""
    await seed_badges(db_session)
    await seed_tips(db_session)
    return db_session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client. Redis stays uninitialized (pushes disabled)."""
    from ecotrack.main import create_app

    async with session_factory() as db:
        await seed_badges(db)
        await seed_tips(db)

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await close_redis()


async def create_user(
    db: AsyncSession,
    user_id: str = "user-1",
    email: str | None = "ada@example.com",
    name: str | None = None,
    total_points: int = 0,
    streak: int = 0,
) -> User:
    """Insert a user row directly."""
    user = User(
        id=user_id,
        email=email,
        name=name,
        total_points=total_points,
        total_co2_saved=0.0,
        streak=streak,
        profile_image="",
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    await db.commit()
    return user


async def log_action(
    db: AsyncSession,
    user_id: str = "user-1",
    type: str = "Cycling",  # noqa: A002
    points: int = 10,
    co2_saved: float = 1.5,
    timestamp: datetime | None = None,
) -> ActionCreatedEvent:
    """Store an action the way the producer does and return its created event."""
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    action = Action(user_id=user_id, type=type, points=points, co2_saved=co2_saved, timestamp=timestamp)
    db.add(action)
    await db.commit()
    return ActionCreatedEvent(
        action_id=action.id,
        user_id=user_id,
        type=type,
        points=points,
        co2_saved=co2_saved,
        timestamp=timestamp,
    )
