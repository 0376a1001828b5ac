"""Live game session storage.

``SessionStore`` is the abstraction the game service talks to; the in-memory
implementation keeps sessions in a dict and serializes work per user with one
``asyncio.Lock`` per key. Requests for different users never wait on each other.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable

from app.core.errors import SessionNotFoundError
from app.core.game_session import GameSession
from app.core.maze_generator import Maze

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str, Maze], GameSession]


class SessionStore(ABC):
    """Keyed collection of live game sessions."""

    @abstractmethod
    async def create(self, user_id: str, maze: Maze) -> GameSession:
        """Create a session for the user, replacing any previous one."""

    @abstractmethod
    async def get(self, user_id: str) -> GameSession:
        """Get the user's session. Raises SessionNotFoundError if there is none."""

    @abstractmethod
    async def remove(self, user_id: str) -> bool:
        """Remove the user's session. Returns False if there was none."""

    @abstractmethod
    def lock(self, user_id: str) -> AsyncContextManager[None]:
        """Async context manager holding exclusive access to one user's session."""

    @abstractmethod
    async def sweep_idle(self, max_idle_seconds: float, now: float) -> list[str]:
        """Remove sessions idle for longer than ``max_idle_seconds``."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class _KeyLock:
    """A lock plus the number of tasks currently using or waiting on it."""

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class InMemorySessionStore(SessionStore):
    """Process-local session store."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory
        self._sessions: dict[str, GameSession] = {}
        self._locks: dict[str, _KeyLock] = {}

    async def create(self, user_id: str, maze: Maze) -> GameSession:
        if user_id in self._sessions:
            logger.info(f"Replacing existing session for user {user_id}")
        session = self._session_factory(user_id, maze)
        self._sessions[user_id] = session
        return session

    async def get(self, user_id: str) -> GameSession:
        session = self._sessions.get(user_id)
        if session is None:
            raise SessionNotFoundError(user_id)
        return session

    async def remove(self, user_id: str) -> bool:
        return self._sessions.pop(user_id, None) is not None

    @asynccontextmanager
    async def lock(self, user_id: str) -> AsyncIterator[None]:
        entry = self._locks.get(user_id)
        if entry is None:
            entry = self._locks[user_id] = _KeyLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and user_id not in self._sessions and self._locks.get(user_id) is entry:
                del self._locks[user_id]

    async def sweep_idle(self, max_idle_seconds: float, now: float) -> list[str]:
        evicted = []
        for user_id, session in list(self._sessions.items()):
            if now - session.last_activity <= max_idle_seconds:
                continue
            entry = self._locks.get(user_id)
            if entry is not None and entry.users:
                # A request is in flight for this user
                continue
            del self._sessions[user_id]
            self._locks.pop(user_id, None)
            evicted.append(user_id)
        return evicted

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions
