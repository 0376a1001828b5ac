"""Pytest configuration and fixtures."""

import os
import random
from typing import AsyncGenerator

# Must be set before the app (and its cached settings) is imported
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LEADERBOARD_ENABLED"] = "false"
os.environ["SESSION_IDLE_TIMEOUT_SECONDS"] = "0"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.config import get_settings
from app.core.maze_generator import Maze, parse_maze
from app.services.game_service import GameService, build_game_service, get_game_service

settings = get_settings()


# Straight corridor: START at the west end, EXIT 13 steps east.
CORRIDOR_MAZE = """\
###############
#S............E
###############"""

# Two corridors joined at the east end, with a wall between them.
U_MAZE = """\
#######
#S....#
#####.#
#E....#
#######"""


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def corridor_maze() -> Maze:
    """15-wide corridor with the exit on the east border."""
    return parse_maze(CORRIDOR_MAZE, difficulty="easy")


@pytest.fixture
def u_maze() -> Maze:
    return parse_maze(U_MAZE, difficulty="easy")


@pytest.fixture
def game_service(rng, clock) -> GameService:
    """Game service with a seeded generator, fake clock and no leaderboard."""
    return build_game_service(settings, rng=rng, clock=clock)


@pytest_asyncio.fixture(scope="function")
async def client(game_service) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client backed by an isolated game service."""
    app.dependency_overrides[get_game_service] = lambda: game_service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
