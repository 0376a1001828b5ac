"""Tests for the in-memory session store."""

import asyncio

import pytest

from app.core.errors import SessionNotFoundError
from app.core.game_session import GameEngine
from app.services.session_store import InMemorySessionStore


@pytest.fixture
def store(clock):
    return InMemorySessionStore(GameEngine(clock=clock).start_session)


@pytest.mark.asyncio
async def test_create_and_get(store, corridor_maze):
    session = await store.create("alice", corridor_maze)

    assert await store.get("alice") is session
    assert len(store) == 1
    assert "alice" in store


@pytest.mark.asyncio
async def test_create_overwrites(store, corridor_maze, u_maze):
    await store.create("alice", corridor_maze)
    replacement = await store.create("alice", u_maze)

    assert await store.get("alice") is replacement
    assert len(store) == 1


@pytest.mark.asyncio
async def test_get_missing(store):
    with pytest.raises(SessionNotFoundError, match="Game not found for user: ghost"):
        await store.get("ghost")


@pytest.mark.asyncio
async def test_remove(store, corridor_maze):
    await store.create("alice", corridor_maze)

    assert await store.remove("alice") is True
    assert await store.remove("alice") is False
    assert len(store) == 0


@pytest.mark.asyncio
async def test_sweep_idle(store, corridor_maze, clock):
    await store.create("idle", corridor_maze)
    clock.advance(100)
    await store.create("fresh", corridor_maze)

    evicted = await store.sweep_idle(max_idle_seconds=50, now=clock.now)

    assert evicted == ["idle"]
    assert "idle" not in store
    assert "fresh" in store


@pytest.mark.asyncio
async def test_sweep_skips_locked_session(store, corridor_maze, clock):
    await store.create("alice", corridor_maze)
    clock.advance(100)

    async with store.lock("alice"):
        evicted = await store.sweep_idle(max_idle_seconds=50, now=clock.now)

    assert evicted == []
    assert "alice" in store


@pytest.mark.asyncio
async def test_lock_serializes_same_key(store):
    order = []

    async def worker(name: str):
        async with store.lock("alice"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a-in", "a-out", "b-in", "b-out"]


@pytest.mark.asyncio
async def test_lock_independent_keys(store):
    entered = asyncio.Event()

    async def holder():
        async with store.lock("alice"):
            await entered.wait()

    async def other():
        async with store.lock("bob"):
            entered.set()

    # Would deadlock if different users shared a lock
    await asyncio.wait_for(asyncio.gather(holder(), other()), timeout=1)


@pytest.mark.asyncio
async def test_unused_locks_are_dropped(store, corridor_maze):
    async with store.lock("ghost"):
        pass
    assert "ghost" not in store._locks

    async with store.lock("alice"):
        await store.create("alice", corridor_maze)
    assert "alice" in store._locks

    await store.remove("alice")
    async with store.lock("alice"):
        pass
    assert "alice" not in store._locks
