"""Event protocol for the game channel.

Clients send ``{"type": ..., "data": {...}}`` messages and get one reply per
message:

    join      {user_id, difficulty}              -> game_initialized  <snapshot>
    move      {user_id, direction}               -> game_state_update <snapshot>
    complete  {user_id, game_state?}             -> game_completed    <score result>

Any failure is reported as ``error {message}``; it never closes the channel.
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from app.core.errors import GameError, InvalidRequestError
from app.core.maze_generator import Position
from app.schemas.game import CompleteRequest, GameEvent, JoinRequest, MoveRequest
from app.services.game_service import GameService

logger = logging.getLogger(__name__)


def error_event(message: str) -> dict:
    return {"type": "error", "data": {"message": message}}


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise InvalidRequestError("user_id is required")
    return user_id


class GameProtocol:
    """Dispatches channel events to the game service.

    ``started_games`` remembers which game (user id -> start time) each join on
    this channel created, so the channel can clean up after itself.
    """

    def __init__(self, service: GameService):
        self.service = service
        self.started_games: dict[str, float] = {}

    async def handle_text(self, raw: str) -> dict:
        """Handle one raw JSON message."""
        try:
            message = json.loads(raw)
        except ValueError:
            return error_event("Message is not valid JSON")
        return await self.handle(message)

    async def handle(self, message: Any) -> dict:
        """Handle one decoded message and build the reply event."""
        try:
            event = GameEvent.model_validate(message)
            if event.type == "join":
                return await self._join(JoinRequest.model_validate(event.data))
            if event.type == "move":
                return await self._move(MoveRequest.model_validate(event.data))
            return await self._complete(CompleteRequest.model_validate(event.data))
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            return error_event(f"Invalid message: {location}: {first['msg']}")
        except GameError as e:
            logger.info(f"Game request failed: {e}")
            return error_event(str(e))

    async def _join(self, request: JoinRequest) -> dict:
        snapshot = await self.service.join(request.user_id, request.difficulty)
        self.started_games[request.user_id] = snapshot["start_time"]
        return {"type": "game_initialized", "data": snapshot}

    async def _move(self, request: MoveRequest) -> dict:
        _, snapshot = await self.service.move(_require_user(request.user_id), request.direction)
        return {"type": "game_state_update", "data": snapshot}

    async def _complete(self, request: CompleteRequest) -> dict:
        user_id = _require_user(request.user_id)
        position = None
        if request.game_state and request.game_state.player_position:
            reported = request.game_state.player_position
            position = Position(reported.x, reported.y)
        result = await self.service.complete(user_id, position)
        self.started_games.pop(user_id, None)
        return {"type": "game_completed", "data": result.to_dict()}

    async def close(self) -> list[str]:
        """Drop the unfinished games this channel started."""
        evicted = []
        for user_id, started_at in self.started_games.items():
            if await self.service.evict(user_id, started_at=started_at):
                evicted.append(user_id)
        self.started_games.clear()
        return evicted
