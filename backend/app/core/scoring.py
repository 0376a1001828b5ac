"""Final score calculation for completed sessions.

Every truncation below is a floor, applied in this order: fog points, then
time bonus, then coins. Fog points come from the hidden and total cell counts
rather than the rounded float percentage.
"""

import math
from dataclasses import dataclass

from app.core.errors import InvalidGameStateError
from app.core.game_session import GameSession
from app.core.maze_generator import Maze
from app.core.visibility import FogGrid, fog_counts

DIFFICULTY_MULTIPLIERS = {
    "easy": 1,
    "medium": 1.5,
    "hard": 2,
}
DEFAULT_MULTIPLIER = 1

PAR_SECONDS = {
    "easy": 120,
    "medium": 240,
    "hard": 360,
}
DEFAULT_PAR_SECONDS = 240


@dataclass(frozen=True)
class ScoreBreakdown:
    fog_points: int
    difficulty_multiplier: float
    par_seconds: int
    time_bonus: int

    def to_dict(self) -> dict:
        return {
            "fog_points": self.fog_points,
            "difficulty_multiplier": self.difficulty_multiplier,
            "par_seconds": self.par_seconds,
            "time_bonus": self.time_bonus,
        }


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of a completed game."""
    user_id: str
    score: float
    fog_percentage: float
    completion_time: float
    steps: int
    difficulty: str
    coins: int
    breakdown: ScoreBreakdown

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "score": self.score,
            "fog_percentage": self.fog_percentage,
            "completion_time": self.completion_time,
            "steps": self.steps,
            "difficulty": self.difficulty,
            "coins": self.coins,
            "breakdown": self.breakdown.to_dict(),
        }


def difficulty_multiplier(difficulty: str) -> float:
    return DIFFICULTY_MULTIPLIERS.get(difficulty, DEFAULT_MULTIPLIER)


def par_seconds(difficulty: str) -> int:
    return PAR_SECONDS.get(difficulty, DEFAULT_PAR_SECONDS)


def fog_points(fog_grid: FogGrid, maze: Maze) -> int:
    """Ten points per percent of open cells still hidden, floored."""
    hidden, total = fog_counts(fog_grid, maze)
    if total == 0:
        return 1000
    # Integer division keeps the floor exact at whole percentages
    return hidden * 1000 // total


def time_bonus(completion_time: float, difficulty: str) -> int:
    """Half a point for every second under par."""
    par = par_seconds(difficulty)
    if completion_time < par:
        return math.floor((par - completion_time) * 0.5)
    return 0


def score(session: GameSession) -> ScoreResult:
    """
    Score a completed session.

    Raises:
        InvalidGameStateError: If the session has not reached the exit yet.
    """
    if not session.is_completed or session.completion_time is None:
        raise InvalidGameStateError("Game not completed yet")

    difficulty = session.maze.difficulty
    points = fog_points(session.fog_grid, session.maze)
    multiplier = difficulty_multiplier(difficulty)
    bonus = time_bonus(session.completion_time, difficulty)
    total = points * multiplier + bonus

    return ScoreResult(
        user_id=session.user_id,
        score=total,
        fog_percentage=round(session.fog_percentage, 2),
        completion_time=round(session.completion_time, 1),
        steps=session.steps,
        difficulty=difficulty,
        coins=math.floor(total / 10),
        breakdown=ScoreBreakdown(
            fog_points=points,
            difficulty_multiplier=multiplier,
            par_seconds=par_seconds(difficulty),
            time_bonus=bonus,
        ),
    )
