"""API dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from app.services.game_service import GameService, get_game_service
from app.services.leaderboard_service import LeaderboardService, get_leaderboard_service


# Type aliases for cleaner route signatures
Games = Annotated[GameService, Depends(get_game_service)]
Leaderboard = Annotated[LeaderboardService, Depends(get_leaderboard_service)]
