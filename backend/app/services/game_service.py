"""Game service: join, move and complete requests over the session store.

Every request for a user runs inside ``store.lock(user_id)``, so a move is
validated, applied, revealed and snapshotted before the next request for the
same user starts. Snapshots are taken inside the lock and handed out as plain
dicts.
"""

import asyncio
import logging
import random
import time
from typing import Callable, Optional

from app.config import Settings, get_settings
from app.core.game_session import GameEngine, MoveResult
from app.core.errors import InvalidGameStateError, SessionNotFoundError
from app.core.maze_generator import MazeGenerator, Position
from app.core.scoring import ScoreResult, score
from app.core.visibility import compute_shadowcast
from app.services.leaderboard_service import LeaderboardService, get_leaderboard_service
from app.services.session_store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


class GameService:
    """Coordinates maze generation, session state, scoring and score recording."""

    def __init__(
        self,
        store: SessionStore,
        generator: MazeGenerator,
        engine: GameEngine,
        leaderboard: Optional[LeaderboardService] = None,
        view_radius: int = 5,
    ):
        self.store = store
        self.generator = generator
        self.engine = engine
        self.leaderboard = leaderboard
        self.view_radius = view_radius

    async def join(self, user_id: str, difficulty: Optional[str] = None) -> dict:
        """Start a new game for the user, replacing any game in progress."""
        async with self.store.lock(user_id):
            maze = self.generator.generate(difficulty)
            session = await self.store.create(user_id, maze)
            logger.info(
                f"User {user_id} started a {maze.width}x{maze.height} "
                f"{maze.difficulty} game"
            )
            return session.to_dict()

    async def get_state(self, user_id: str) -> dict:
        """Current snapshot of the user's game."""
        async with self.store.lock(user_id):
            session = await self.store.get(user_id)
            return session.to_dict()

    async def move(self, user_id: str, direction: str) -> tuple[MoveResult, dict]:
        """
        Apply one move.

        Returns:
            The move result and the session snapshot after it. A blocked move
            returns the unchanged snapshot.
        """
        async with self.store.lock(user_id):
            session = await self.store.get(user_id)
            result = self.engine.move(session, direction)
            logger.debug(
                f"User {user_id} move {direction}: {result.status} "
                f"at {result.position.to_dict()} (steps={result.steps})"
            )
            return result, session.to_dict()

    async def complete(
        self, user_id: str, player_position: Optional[Position] = None
    ) -> ScoreResult:
        """
        Score a finished game and discard its session.

        Args:
            user_id: Player whose game to complete.
            player_position: Position reported by the client. Defaults to the
                server-side position.

        Raises:
            SessionNotFoundError: If the user has no live game.
            InvalidGameStateError: If the player is not on the exit or the game
                has not been completed by a move.
        """
        async with self.store.lock(user_id):
            session = await self.store.get(user_id)
            position = session.player_position if player_position is None else player_position
            if position != session.maze.exit:
                raise InvalidGameStateError("Player has not reached the exit")
            result = score(session)
            await self.store.remove(user_id)

        logger.info(
            f"User {user_id} completed the game with score {result.score} "
            f"({result.coins} coins)"
        )
        await self._record(result)
        return result

    async def view(
        self, user_id: str, radius: Optional[int] = None
    ) -> tuple[Position, list[Position]]:
        """Player position and the cells visible from it with wall occlusion, for rendering."""
        async with self.store.lock(user_id):
            session = await self.store.get(user_id)
            position = session.player_position
            cells = compute_shadowcast(
                session.maze,
                position,
                self.view_radius if radius is None else radius,
            )
        return position, sorted(cells, key=lambda p: (p.y, p.x))

    async def evict(self, user_id: str, started_at: Optional[float] = None) -> bool:
        """
        Drop a user's game without scoring it.

        With ``started_at``, only the game that started at that time is dropped,
        so a newer game for the same user survives.
        """
        async with self.store.lock(user_id):
            if started_at is not None:
                try:
                    session = await self.store.get(user_id)
                except SessionNotFoundError:
                    return False
                if session.start_time != started_at:
                    return False
            removed = await self.store.remove(user_id)
        if removed:
            logger.info(f"Evicted session for user {user_id}")
        return removed

    async def sweep_idle(self, max_idle_seconds: float) -> list[str]:
        evicted = await self.store.sweep_idle(max_idle_seconds, self.engine.clock())
        if evicted:
            logger.info(f"Evicted {len(evicted)} idle sessions: {', '.join(evicted)}")
        return evicted

    async def _record(self, result: ScoreResult) -> None:
        if self.leaderboard is None:
            return
        try:
            is_best, rank = await self.leaderboard.record_result(result)
            if is_best:
                logger.info(f"New personal best for {result.user_id}: {result.score} (rank: {rank})")
        except Exception as e:
            logger.warning(f"Failed to update leaderboard: {e}")


async def session_sweeper(
    service: GameService,
    max_idle_seconds: float,
    interval_seconds: float,
) -> None:
    """Background task evicting sessions that never reach the exit."""
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            await service.sweep_idle(max_idle_seconds)
        except asyncio.CancelledError:
            break
        except Exception as e:
            # Log error but keep sweeping
            logger.error(f"Error sweeping idle sessions: {e}")


def build_game_service(
    settings: Settings,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.time,
    leaderboard: Optional[LeaderboardService] = None,
) -> GameService:
    """Wire a game service from settings."""
    engine = GameEngine(
        reveal_radius=settings.reveal_radius,
        fog_policy=settings.fog_policy,
        clock=clock,
    )
    if leaderboard is None and settings.leaderboard_enabled:
        leaderboard = get_leaderboard_service()
    return GameService(
        store=InMemorySessionStore(engine.start_session),
        generator=MazeGenerator(rng=rng, exit_policy=settings.exit_policy),
        engine=engine,
        leaderboard=leaderboard,
        view_radius=settings.view_radius,
    )


# Singleton instance
_game_service: Optional[GameService] = None


def get_game_service() -> GameService:
    """Get singleton game service."""
    global _game_service
    if _game_service is None:
        _game_service = build_game_service(get_settings())
    return _game_service
