"""Pytest fixtures for the BlogHub backend."""

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from api.deps import get_db
from app import create_app
from core.config import settings
from models import Follow, User
from services.exceptions import DuplicateRelationshipError, PersistenceError

PASSWORD = "Sup3rSecret!"


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    root_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "alembic"))

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "bloghub-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest_asyncio.fixture()
async def test_engine(test_database_url: str) -> AsyncIterator:
    """Create an async engine bound to the migrated SQLite test database."""
    engine = create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture()
def app(session_maker) -> Iterator[FastAPI]:
    """Create the FastAPI app with a test database dependency override."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    yield application


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture(autouse=True)
async def clean_database(session_maker) -> AsyncIterator[None]:
    """Clear tables before each test to guarantee isolation."""
    async with session_maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


@dataclass(slots=True)
class RegisteredUser:
    id: str
    email: str
    password: str


def make_user_payload(prefix: str) -> dict[str, str]:
    suffix = uuid4().hex[:6]
    return {
        "name": f"{prefix.title()} {suffix}",
        "email": f"{prefix}_{suffix}@example.com",
        "password": PASSWORD,
    }


@pytest.fixture()
def register_user(async_client: AsyncClient) -> Callable[[str], Awaitable[RegisteredUser]]:
    """Sign a user up through the API and return its identity."""

    async def _register(prefix: str) -> RegisteredUser:
        payload = make_user_payload(prefix)
        response = await async_client.post("/api/auth/signup", json=payload)
        assert response.status_code == 201, response.text
        return RegisteredUser(
            id=response.json()["id"],
            email=payload["email"],
            password=payload["password"],
        )

    return _register


@pytest.fixture()
def login_as(async_client: AsyncClient) -> Callable[[RegisteredUser], Awaitable[str]]:
    """Log the shared client in as the given user; returns the access token."""

    async def _login(user: RegisteredUser) -> str:
        response = await async_client.post(
            "/api/auth/login",
            json={"email": user.email, "password": user.password},
        )
        assert response.status_code == 200, response.text
        return response.json()["access_token"]

    return _login


class InMemoryUserStore:
    """UserStore fake; ``failing_counters`` names counters whose writes raise."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.failing_counters: set[str] = set()

    def add(self, *, follower_count: int = 0, following_count: int = 0) -> User:
        user_id = str(uuid4())
        user = User(
            id=user_id,
            email=f"{user_id}@example.com",
            follower_count=follower_count,
            following_count=following_count,
        )
        self.users[user_id] = user
        return user

    async def find_user_by_id(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    async def adjust_follower_count(self, user_id: str, delta: int) -> None:
        self._adjust("follower_count", user_id, delta)

    async def adjust_following_count(self, user_id: str, delta: int) -> None:
        self._adjust("following_count", user_id, delta)

    async def get_follower_count(self, user_id: str) -> int | None:
        user = self.users.get(user_id)
        return None if user is None else user.follower_count

    def _adjust(self, counter: str, user_id: str, delta: int) -> None:
        if counter in self.failing_counters:
            raise PersistenceError(f"{counter} unavailable")
        user = self.users.get(user_id)
        if user is not None:
            setattr(user, counter, max(getattr(user, counter) + delta, 0))


class InMemoryFollowStore:
    """FollowStore fake keyed by (follower_id, following_id)."""

    def __init__(self, users: InMemoryUserStore) -> None:
        self._users = users
        self.relationships: dict[tuple[str, str], Follow] = {}
        # Simulates a concurrent request inserting the pair between check and insert.
        self.race_on_create = False

    async def find_relationship(self, follower_id: str, following_id: str) -> Follow | None:
        return self.relationships.get((follower_id, following_id))

    async def create_relationship(self, follower_id: str, following_id: str) -> Follow:
        key = (follower_id, following_id)
        if self.race_on_create or key in self.relationships:
            raise DuplicateRelationshipError(f"{follower_id} already follows {following_id}")
        follow = Follow(
            follower_id=follower_id,
            following_id=following_id,
            created_at=datetime.now(timezone.utc),
        )
        self.relationships[key] = follow
        return follow

    async def delete_relationship(self, follower_id: str, following_id: str) -> bool:
        return self.relationships.pop((follower_id, following_id), None) is not None

    async def list_followers(self, user_id: str, *, limit: int | None = None, offset: int = 0) -> list[User]:
        ids = [follower for follower, following in self.relationships if following == user_id]
        return self._page(ids, limit=limit, offset=offset)

    async def list_following(self, user_id: str, *, limit: int | None = None, offset: int = 0) -> list[User]:
        ids = [following for follower, following in self.relationships if follower == user_id]
        return self._page(ids, limit=limit, offset=offset)

    def _page(self, ids: list[str], *, limit: int | None, offset: int) -> list[User]:
        users = [self._users.users[user_id] for user_id in ids]
        end = None if limit is None else offset + limit
        return users[offset:end]


@pytest.fixture()
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture()
def follow_store(user_store: InMemoryUserStore) -> InMemoryFollowStore:
    return InMemoryFollowStore(user_store)
