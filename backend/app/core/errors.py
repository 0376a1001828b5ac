"""Errors raised by the maze game core."""


class GameError(Exception):
    """Base class for errors surfaced to the caller of a game request."""

    pass


class SessionNotFoundError(GameError):
    """Raised when a request references a user with no live session."""

    def __init__(self, user_id: str):
        super().__init__(f"Game not found for user: {user_id}")
        self.user_id = user_id


class InvalidRequestError(GameError):
    """Raised when a request is malformed."""

    pass


class InvalidMoveError(InvalidRequestError):
    """Raised when a movement direction is not recognized."""

    pass


class InvalidGameStateError(GameError):
    """Raised when a request is not allowed in the session's current state."""

    pass


class MazeGenerationError(Exception):
    """Raised when a generated maze violates its own invariants."""

    pass
