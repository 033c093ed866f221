"""Shared pytest fixtures for matka-api tests."""
import os
import tempfile
from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator

# must be set before anything under matka is imported
_TMP_DIR = tempfile.mkdtemp(prefix="matka-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/matka_test.db"
os.environ["JWT_SECRET"] = "test-secret"

import fakeredis
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select

from matka.db.session import AsyncSessionLocal, Base, engine
from matka.models import bet, game, rate, result, user, wallet  # noqa: F401
from matka.models.game import Game, StarlineGame
from matka.models.rate import GameRate
from matka.models.user import User
from matka.tasks.dispatcher import dispatcher

GAME_DATE = date(2026, 1, 15)
BEFORE_OPEN = datetime(2026, 1, 15, 9, 0)

MAIN_RATES = {
    "singleDigit": (10, 95),
    "jodiDigit": (10, 950),
    "singlePana": (10, 1500),
    "doublePana": (10, 3000),
    "triplePana": (10, 7000),
    "halfSangam": (10, 10000),
    "fullSangam": (10, 100000),
}
STARLINE_RATES = {
    "singleDigit": (1, 10),
    "singlePana": (1, 160),
    "doublePana": (1, 320),
    "triplePana": (1, 1000),
}


@pytest.fixture(autouse=True)
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema per test on a temp-file sqlite database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await dispatcher.stop()
    await engine.dispose()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Result cache backed by fakeredis."""
    fake = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    monkeypatch.setattr("matka.services.result_cache.r", fake)
    return fake


@pytest.fixture
async def session():
    async with AsyncSessionLocal() as s:
        yield s


async def add_user(username: str, role: str = "user", balance: str = "1000.00") -> int:
    async with AsyncSessionLocal() as s:
        u = User(username=username, nickname=username, role=role, status=1, balance=Decimal(balance))
        s.add(u)
        await s.commit()
        return u.id


@pytest.fixture
async def player_id() -> int:
    return await add_user("player")


@pytest.fixture
async def admin_id() -> int:
    return await add_user("admin", role="admin", balance="0.00")


@pytest.fixture
async def main_game() -> int:
    async with AsyncSessionLocal() as s:
        g = Game(name="KALYAN", open_time="10:00", close_time="12:00", is_active=True)
        s.add(g)
        await s.commit()
        return g.id


@pytest.fixture
async def starline_game() -> int:
    async with AsyncSessionLocal() as s:
        g = StarlineGame(name="STARLINE 3PM", open_time="15:00", is_active=True)
        s.add(g)
        await s.commit()
        return g.id


async def set_rates(family: str, table: dict) -> None:
    async with AsyncSessionLocal() as s:
        for key, (mn, mx) in table.items():
            s.add(GameRate(family=family, rate_key=key, min_rate=Decimal(mn), max_rate=Decimal(mx)))
        await s.commit()


@pytest.fixture
async def main_rates() -> None:
    await set_rates("main", MAIN_RATES)


@pytest.fixture
async def starline_rates() -> None:
    await set_rates("starline", STARLINE_RATES)


async def balance_of(user_id: int) -> Decimal:
    async with AsyncSessionLocal() as s:
        return await s.scalar(select(User.balance).where(User.id == user_id))


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the ASGI app; startup hooks (scheduler) do not run."""
    from matka.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
