"""Leaderboard service using Redis sorted sets."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import redis.asyncio as redis

from app.core.maze_generator import DEFAULT_DIFFICULTY, MAZE_SIZES
from app.core.scoring import ScoreResult
from app.db.redis import get_redis


@dataclass
class LeaderboardEntry:
    """A single leaderboard entry."""

    user_id: str
    difficulty: str
    score: float  # Higher is better
    coins: int
    steps: int
    completion_time: float
    submitted_at: datetime
    rank: int = 0


class LeaderboardService:
    """Service for recording completed games in Redis sorted sets."""

    # Redis key patterns
    GLOBAL_LEADERBOARD_KEY = "leaderboard:global"
    DIFFICULTY_LEADERBOARD_KEY = "leaderboard:difficulty:{difficulty}"
    ENTRY_DATA_KEY = "leaderboard:entry:{entry_id}"

    def __init__(self):
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis client."""
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def record_result(self, result: ScoreResult) -> tuple[bool, Optional[int]]:
        """
        Record a completed game.

        Only a user's best score per difficulty is kept. Difficulties outside
        the known boards are filed under the default one.

        Returns:
            Tuple of (is_personal_best, new_rank) or (False, None) if not a best
        """
        r = await self._get_redis()

        board = result.difficulty if result.difficulty in MAZE_SIZES else DEFAULT_DIFFICULTY
        entry_id = f"{result.user_id}:{board}"

        existing_score = await r.hget(self.ENTRY_DATA_KEY.format(entry_id=entry_id), "score")
        if existing_score is not None and result.score <= float(existing_score):
            return False, None

        entry_data = {
            "user_id": result.user_id,
            "difficulty": board,
            "score": result.score,
            "coins": result.coins,
            "steps": result.steps,
            "completion_time": result.completion_time,
            "submitted_at": datetime.now(timezone.utc).isoformat(),
        }

        await r.hset(
            self.ENTRY_DATA_KEY.format(entry_id=entry_id),
            mapping=entry_data,
        )
        await r.zadd(self.GLOBAL_LEADERBOARD_KEY, {entry_id: result.score})
        await r.zadd(
            self.DIFFICULTY_LEADERBOARD_KEY.format(difficulty=board),
            {entry_id: result.score},
        )

        # Highest score first
        new_rank = await r.zrevrank(self.GLOBAL_LEADERBOARD_KEY, entry_id)
        return True, new_rank + 1 if new_rank is not None else 1

    async def get_leaderboard(
        self,
        difficulty: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LeaderboardEntry]:
        """
        Get leaderboard entries, best first.

        Args:
            difficulty: Optional difficulty to filter by
            limit: Maximum entries to return
            offset: Offset for pagination
        """
        r = await self._get_redis()

        if difficulty:
            key = self.DIFFICULTY_LEADERBOARD_KEY.format(difficulty=difficulty)
        else:
            key = self.GLOBAL_LEADERBOARD_KEY

        entries = await r.zrevrange(key, offset, offset + limit - 1, withscores=True)

        result = []
        for i, (entry_id, score) in enumerate(entries):
            entry_data = await r.hgetall(self.ENTRY_DATA_KEY.format(entry_id=entry_id))
            if not entry_data:
                continue
            result.append(
                LeaderboardEntry(
                    user_id=entry_data.get("user_id", ""),
                    difficulty=entry_data.get("difficulty", ""),
                    score=float(score),
                    coins=int(entry_data.get("coins", 0)),
                    steps=int(entry_data.get("steps", 0)),
                    completion_time=float(entry_data.get("completion_time", 0)),
                    submitted_at=datetime.fromisoformat(
                        entry_data.get("submitted_at", datetime.now(timezone.utc).isoformat())
                    ),
                    rank=offset + i + 1,
                )
            )

        return result


# Singleton instance
_leaderboard_service: Optional[LeaderboardService] = None


def get_leaderboard_service() -> LeaderboardService:
    """Get singleton leaderboard service."""
    global _leaderboard_service
    if _leaderboard_service is None:
        _leaderboard_service = LeaderboardService()
    return _leaderboard_service
