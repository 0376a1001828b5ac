"""Game routes: HTTP endpoints and the WebSocket event channel."""

import logging
from typing import Optional

from fastapi import (
    APIRouter,
    HTTPException,
    Query,
    Request,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.api.deps import Games
from app.config import get_settings
from app.core.errors import (
    GameError,
    InvalidGameStateError,
    InvalidRequestError,
    SessionNotFoundError,
)
from app.core.maze_generator import Position
from app.schemas.game import (
    CompleteRequest,
    GamePosition,
    GameStateResponse,
    JoinRequest,
    MoveRequest,
    MoveResponse,
    ScoreResponse,
    ViewResponse,
)
from app.services.game_protocol import GameProtocol

logger = logging.getLogger(__name__)

settings = get_settings()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

router = APIRouter(prefix="/game", tags=["Game"])


def _http_error(exc: GameError) -> HTTPException:
    """Translate a game error into an HTTP error."""
    if isinstance(exc, SessionNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidRequestError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, InvalidGameStateError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))


@router.post(
    "/join",
    response_model=GameStateResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(f"{settings.rate_limit_joins}/minute")
async def join_game(
    request: Request,
    join_request: JoinRequest,
    games: Games,
) -> GameStateResponse:
    """Start a new game.

    Generates a maze for the requested difficulty and places the player on
    the start cell. Any game in progress for the same user is replaced.
    """
    try:
        snapshot = await games.join(join_request.user_id, join_request.difficulty)
    except GameError as e:
        raise _http_error(e)
    return GameStateResponse.model_validate(snapshot)


@router.websocket("/ws")
async def game_websocket(websocket: WebSocket, games: Games):
    """WebSocket event channel.

    Messages are JSON with format:
    {"type": "join" | "move" | "complete", "data": {...}}

    Each message gets exactly one reply:
    {"type": "game_initialized" | "game_state_update" | "game_completed" | "error", "data": {...}}
    """
    await websocket.accept()
    protocol = GameProtocol(games)

    try:
        while True:
            raw = await websocket.receive_text()
            reply = await protocol.handle_text(raw)
            await websocket.send_json(reply)
    except WebSocketDisconnect:
        logger.info("Game channel disconnected")
    finally:
        if get_settings().evict_on_disconnect:
            await protocol.close()


@router.get(
    "/{user_id}",
    response_model=GameStateResponse,
)
async def get_game(user_id: str, games: Games) -> GameStateResponse:
    """Get the current state of a user's game."""
    try:
        snapshot = await games.get_state(user_id)
    except GameError as e:
        raise _http_error(e)
    return GameStateResponse.model_validate(snapshot)


@router.post(
    "/{user_id}/move",
    response_model=MoveResponse,
)
async def move(
    user_id: str,
    move_request: MoveRequest,
    games: Games,
) -> MoveResponse:
    """Move one cell up, right, down or left.

    Moving into a wall is not an error: the game state comes back unchanged
    with status ``blocked``.
    """
    try:
        result, snapshot = await games.move(user_id, move_request.direction)
    except GameError as e:
        raise _http_error(e)

    return MoveResponse(
        status=result.status,
        position=GamePosition(x=result.position.x, y=result.position.y),
        steps=result.steps,
        message=result.message,
        game_state=GameStateResponse.model_validate(snapshot),
    )


@router.post(
    "/{user_id}/complete",
    response_model=ScoreResponse,
)
async def complete(
    user_id: str,
    games: Games,
    complete_request: Optional[CompleteRequest] = None,
) -> ScoreResponse:
    """Finish a game that reached the exit and get its score.

    The game is discarded once scored.
    """
    position = None
    if complete_request and complete_request.game_state and complete_request.game_state.player_position:
        reported = complete_request.game_state.player_position
        position = Position(reported.x, reported.y)

    try:
        result = await games.complete(user_id, position)
    except GameError as e:
        raise _http_error(e)
    return ScoreResponse.model_validate(result.to_dict())


@router.get(
    "/{user_id}/view",
    response_model=ViewResponse,
)
async def view(
    user_id: str,
    games: Games,
    radius: Optional[int] = Query(None, ge=0, le=20, description="View radius in cells"),
) -> ViewResponse:
    """Cells currently in the player's line of sight (walls block the view)."""
    try:
        position, cells = await games.view(user_id, radius)
    except GameError as e:
        raise _http_error(e)

    return ViewResponse(
        user_id=user_id,
        position=GamePosition(x=position.x, y=position.y),
        radius=games.view_radius if radius is None else radius,
        cells=[GamePosition(x=c.x, y=c.y) for c in cells],
    )
