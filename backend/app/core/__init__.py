# Core module
from .errors import (
    GameError,
    InvalidGameStateError,
    InvalidMoveError,
    InvalidRequestError,
    MazeGenerationError,
    SessionNotFoundError,
)
from .maze_generator import CellType, ExitPolicy, Maze, MazeGenerator, Position
from .visibility import FogCell, FogPolicy, fog_percentage, reveal
from .game_session import Direction, GameEngine, GameSession, GameStatus, MovementValidator
from .scoring import ScoreResult, score

__all__ = [
    "GameError",
    "InvalidGameStateError",
    "InvalidMoveError",
    "InvalidRequestError",
    "MazeGenerationError",
    "SessionNotFoundError",
    "CellType",
    "ExitPolicy",
    "Maze",
    "MazeGenerator",
    "Position",
    "FogCell",
    "FogPolicy",
    "fog_percentage",
    "reveal",
    "Direction",
    "GameEngine",
    "GameSession",
    "GameStatus",
    "MovementValidator",
    "ScoreResult",
    "score",
]
