import os
import sys
import asyncio
from collections.abc import Iterable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")
os.environ.setdefault("ALLOW_CREDENTIALS", "false")
os.environ.setdefault("PENDING_MATCH_RATE_LIMIT", "1000/minute")
# Honour any externally provided DATABASE_URL but fall back to an in-memory
# SQLite database so local runs remain isolated.
DEFAULT_DB_URL = os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Ensure all SQLAlchemy models are registered with the declarative Base so
# metadata.create_all creates every table.
from league import db, models  # noqa: E402,F401


@pytest.fixture(scope="session")
def session_loop():
    """Single event loop for all sync fixtures that need to run async DB code."""

    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture(autouse=True, scope="session")
def ensure_database(session_loop):
    """Make sure the shared engine honours DATABASE_URL and is disposed at the end."""

    db.engine = None
    db.AsyncSessionLocal = None
    yield
    if db.engine is not None:
        session_loop.run_until_complete(db.engine.dispose())
        db.engine = None
    db.AsyncSessionLocal = None


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_engine(path=None):
    """Return an engine for a private test database.

    Without ``path`` the database lives in memory on a single shared
    connection. With a file path every session gets its own connection,
    which is what the concurrent match lookups need.
    """

    if path is None:
        return create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)


def make_sessionmaker(engine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_schema(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(db.Base.metadata.drop_all)
        await conn.run_sync(db.Base.metadata.create_all)


class FakeMatchLookup:
    """In-memory match record source keyed by ``(period_id, player_id)``."""

    def __init__(
        self,
        slot_a: dict[tuple[str, str], int] | None = None,
        slot_b: dict[tuple[str, str], int] | None = None,
        failing: Iterable[str] = (),
    ) -> None:
        self.slot_a = dict(slot_a or {})
        self.slot_b = dict(slot_b or {})
        self.failing = set(failing)
        self.calls: list[tuple[str, str, str]] = []

    def _rows(self, table, slot, period_id, player_id):
        self.calls.append((slot, period_id, player_id))
        if player_id in self.failing:
            raise ConnectionError(f"match store unavailable for {player_id}")
        return [object()] * table.get((period_id, player_id), 0)

    async def find_by_period_and_slot_a(self, period_id, player_id):
        await asyncio.sleep(0)
        return self._rows(self.slot_a, "a", period_id, player_id)

    async def find_by_period_and_slot_b(self, period_id, player_id):
        await asyncio.sleep(0)
        return self._rows(self.slot_b, "b", period_id, player_id)


@pytest.fixture
def fake_lookup():
    return FakeMatchLookup()


@pytest.fixture()
def api_client(tmp_path):
    """TestClient over the league routers backed by a private SQLite file."""

    from fastapi import FastAPI, HTTPException
    from fastapi.testclient import TestClient
    from slowapi.errors import RateLimitExceeded

    from league.db import get_session
    from league.exceptions import DomainException
    from league.main import domain_exception_handler, http_exception_handler
    from league.rate_limit import limiter, rate_limit_handler
    from league.routers import matches, periods, players
    from league.routers.deps import get_match_lookup
    from league.services.match_counter import SqlMatchRecordLookup

    engine = make_engine(tmp_path / "league.db")
    async_session_maker = make_sessionmaker(engine)
    asyncio.run(create_schema(engine))

    async def override_get_session():
        async with async_session_maker() as session:
            yield session

    app = FastAPI()
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    for module in (players, periods, matches):
        app.include_router(module.router, prefix="/api/v0")
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_match_lookup] = lambda: SqlMatchRecordLookup(
        async_session_maker
    )
    limiter.reset()

    with TestClient(app) as client:
        yield client, async_session_maker

    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


def seed(session_maker, *rows) -> None:
    """Insert ``rows`` with a throwaway session."""

    async def _seed() -> None:
        async with session_maker() as session:
            session.add_all(rows)
            await session.commit()

    asyncio.run(_seed())
