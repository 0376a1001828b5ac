"""Leaderboard routes."""

from typing import Optional

from fastapi import APIRouter, Query

from app.api.deps import Leaderboard
from app.schemas.leaderboard import (
    LeaderboardEntryResponse,
    LeaderboardResponse,
)

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


@router.get(
    "",
    response_model=LeaderboardResponse,
)
async def get_leaderboard(
    service: Leaderboard,
    difficulty: Optional[str] = Query(
        None,
        description="Filter by difficulty (easy, medium, hard)",
        pattern="^(easy|medium|hard)$",
    ),
    limit: int = Query(100, ge=1, le=500, description="Maximum entries to return"),
    offset: int = Query(0, ge=0, description="Offset for pagination"),
) -> LeaderboardResponse:
    """Get leaderboard entries.

    Returns completed games sorted by score (higher is better), one best
    entry per user and difficulty.
    """
    entries = await service.get_leaderboard(
        difficulty=difficulty,
        limit=limit,
        offset=offset,
    )

    return LeaderboardResponse(
        entries=[LeaderboardEntryResponse.model_validate(e) for e in entries],
        total=len(entries),
        difficulty=difficulty,
    )
