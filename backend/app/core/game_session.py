"""
Maze Runner Game Session

Authoritative per-player game state:
- Session creation around a generated maze
- Move validation against the maze grid
- Fog of war updates on every accepted move
- Exit detection (active -> completed)

A session is only ever mutated through ``GameEngine``; callers are expected to
hold the session store's lock for the user while doing so.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Literal, Optional

from app.core.errors import InvalidGameStateError, InvalidMoveError
from app.core.maze_generator import Maze, Position
from app.core.visibility import (
    FogGrid,
    FogPolicy,
    fog_percentage,
    new_fog_grid,
    reveal,
)

logger = logging.getLogger(__name__)

DEFAULT_REVEAL_RADIUS = 2


class Direction(Enum):
    """Movement directions."""
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def delta(self) -> tuple[int, int]:
        """Get (dx, dy) for this direction."""
        deltas = {
            Direction.UP: (0, -1),
            Direction.RIGHT: (1, 0),
            Direction.DOWN: (0, 1),
            Direction.LEFT: (-1, 0),
        }
        return deltas[self]

    @classmethod
    def parse(cls, value: "str | Direction") -> "Direction":
        """Convert a client-supplied direction, raising InvalidMoveError if unknown."""
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidMoveError(f"Invalid direction: {value!r}") from None


class GameStatus(str, Enum):
    """Session lifecycle."""
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass
class GameSession:
    """One player's game."""
    user_id: str
    maze: Maze
    player_position: Position
    fog_grid: FogGrid
    fog_percentage: float
    start_time: float
    steps: int = 0
    status: GameStatus = GameStatus.ACTIVE
    end_time: Optional[float] = None
    completion_time: Optional[float] = None
    last_activity: float = field(default=0.0, repr=False)

    @property
    def is_completed(self) -> bool:
        return self.status == GameStatus.COMPLETED

    def to_dict(self) -> dict:
        """Full snapshot sent to clients."""
        return {
            "user_id": self.user_id,
            "maze": self.maze.to_dict(),
            "player_position": self.player_position.to_dict(),
            "fog_grid": [list(row) for row in self.fog_grid],
            "fog_percentage": self.fog_percentage,
            "start_time": self.start_time,
            "steps": self.steps,
            "status": self.status.value,
            "end_time": self.end_time,
            "completion_time": self.completion_time,
        }


@dataclass
class MoveResult:
    """Result of a move request."""
    status: Literal["moved", "blocked", "completed"]
    position: Position
    steps: int
    message: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status != "blocked"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        result = {
            "status": self.status,
            "position": self.position.to_dict(),
            "steps": self.steps,
        }
        if self.message:
            result["message"] = self.message
        return result


class MovementValidator:
    """Checks proposed moves against maze topology."""

    def try_move(self, session: GameSession, direction: "str | Direction") -> Optional[Position]:
        """
        Compute the destination of a move.

        Returns:
            The candidate position, or None if it is off-grid or a wall.

        Raises:
            InvalidMoveError: If the direction is not recognized.
        """
        dx, dy = Direction.parse(direction).delta
        candidate = session.player_position.offset(dx, dy)
        if not session.maze.in_bounds(candidate.x, candidate.y):
            return None
        if session.maze.is_wall(candidate.x, candidate.y):
            return None
        return candidate


class GameEngine:
    """
    Applies game rules to sessions.

    Example usage:
        engine = GameEngine(reveal_radius=2)
        session = engine.start_session("user-1", maze)
        result = engine.move(session, "right")
    """

    def __init__(
        self,
        reveal_radius: int = DEFAULT_REVEAL_RADIUS,
        fog_policy: FogPolicy = FogPolicy.RADIUS,
        clock: Callable[[], float] = time.time,
        validator: Optional[MovementValidator] = None,
    ):
        self.reveal_radius = reveal_radius
        self.fog_policy = FogPolicy(fog_policy)
        self.clock = clock
        self.validator = validator or MovementValidator()

    def start_session(self, user_id: str, maze: Maze) -> GameSession:
        """Create a session at the maze start with the starting area revealed."""
        fog_grid = new_fog_grid(maze)
        reveal(fog_grid, maze, maze.start, self.reveal_radius, self.fog_policy)
        now = self.clock()
        return GameSession(
            user_id=user_id,
            maze=maze,
            player_position=maze.start,
            fog_grid=fog_grid,
            fog_percentage=fog_percentage(fog_grid, maze),
            start_time=now,
            last_activity=now,
        )

    def move(self, session: GameSession, direction: "str | Direction") -> MoveResult:
        """
        Move the player one cell.

        A move into a wall or off the grid leaves the session untouched and
        reports ``blocked``.

        Raises:
            InvalidMoveError: If the direction is not recognized.
            InvalidGameStateError: If the session is already completed.
        """
        parsed = Direction.parse(direction)
        if session.is_completed:
            raise InvalidGameStateError("Game already completed")

        session.last_activity = self.clock()
        candidate = self.validator.try_move(session, parsed)
        if candidate is None:
            return MoveResult(
                status="blocked",
                position=session.player_position,
                steps=session.steps,
                message=f"Cannot move {parsed.value} - wall blocking",
            )

        session.player_position = candidate
        reveal(session.fog_grid, session.maze, candidate, self.reveal_radius, self.fog_policy)
        session.fog_percentage = fog_percentage(session.fog_grid, session.maze)
        session.steps += 1

        if candidate == session.maze.exit:
            session.status = GameStatus.COMPLETED
            session.end_time = session.last_activity
            session.completion_time = session.end_time - session.start_time
            logger.debug(
                f"User {session.user_id} reached the exit in {session.steps} steps "
                f"({session.completion_time:.1f}s)"
            )
            return MoveResult(
                status="completed",
                position=candidate,
                steps=session.steps,
                message="You escaped the maze!",
            )

        return MoveResult(status="moved", position=candidate, steps=session.steps)
