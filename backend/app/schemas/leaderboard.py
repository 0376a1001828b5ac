"""Leaderboard schemas for response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LeaderboardEntryResponse(BaseModel):
    """Schema for a leaderboard entry."""

    user_id: str
    difficulty: str
    score: float
    coins: int
    steps: int
    completion_time: float
    rank: int
    submitted_at: datetime

    class Config:
        from_attributes = True


class LeaderboardResponse(BaseModel):
    """Schema for leaderboard response."""

    entries: list[LeaderboardEntryResponse]
    total: int
    difficulty: Optional[str] = None
