"""Game schemas for request/response validation."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class GamePosition(BaseModel):
    """Schema for a grid position."""

    x: int
    y: int


class MazeData(BaseModel):
    """Schema for a generated maze."""

    grid: list[list[int]]
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    start_x: int
    start_y: int
    exit_x: int
    exit_y: int
    difficulty: str


class JoinRequest(BaseModel):
    """Schema for starting a game."""

    user_id: str = Field(..., min_length=1, max_length=100)
    difficulty: Optional[str] = Field(None, max_length=20)


class MoveRequest(BaseModel):
    """Schema for move request."""

    user_id: Optional[str] = None
    direction: str = Field(..., min_length=1, max_length=10)


class ReportedState(BaseModel):
    """Client-side view of the game submitted with a completion request."""

    player_position: Optional[GamePosition] = None


class CompleteRequest(BaseModel):
    """Schema for completion request."""

    user_id: Optional[str] = None
    game_state: Optional[ReportedState] = None


class GameStateResponse(BaseModel):
    """Full session snapshot."""

    user_id: str
    maze: MazeData
    player_position: GamePosition
    fog_grid: list[list[int]]
    fog_percentage: float
    start_time: float
    steps: int
    status: str  # active, completed
    end_time: Optional[float] = None
    completion_time: Optional[float] = None


class MoveResponse(BaseModel):
    """Schema for move response."""

    status: str  # moved, blocked, completed
    position: GamePosition
    steps: int
    message: Optional[str] = None
    game_state: GameStateResponse


class ScoreBreakdownResponse(BaseModel):
    """How a score was assembled."""

    fog_points: int
    difficulty_multiplier: float
    par_seconds: int
    time_bonus: int


class ScoreResponse(BaseModel):
    """Schema for a completed game's result."""

    user_id: str
    score: float
    fog_percentage: float
    completion_time: float
    steps: int
    difficulty: str
    coins: int
    breakdown: ScoreBreakdownResponse


class ViewResponse(BaseModel):
    """Cells visible from the player's position."""

    user_id: str
    position: GamePosition
    radius: int
    cells: list[GamePosition]


class GameEvent(BaseModel):
    """Envelope for messages on the game WebSocket."""

    type: Literal["join", "move", "complete"]
    data: dict[str, Any] = Field(default_factory=dict)
