"""Shared fixtures: a temporary slot database and a controllable clock."""

import pytest
import pytest_asyncio

from src.db.database import close_db_async, init_db_async

START = 1_700_000_000.0


class FakeClock:
    """Callable clock whose time only moves when a test advances it."""

    def __init__(self, start: float = START) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def db_url(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'slots.db'}"
    await init_db_async(url)
    yield url
    await close_db_async(url)


@pytest_asyncio.fixture
async def bare_db_url(tmp_path):
    """A reachable SQLite file without the slot tables."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}"
    yield url
    await close_db_async(url)
