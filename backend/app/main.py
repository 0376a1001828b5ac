"""Maze Runner API - Main FastAPI Application."""

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from app.api.deps import Games
from app.api.routes import game, leaderboard
from app.db.redis import close_redis
from app.services.game_service import get_game_service, session_sweeper

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("maze_runner")


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Reply 429 when a client starts games faster than allowed."""
    request_id = getattr(request.state, "request_id", "-")
    client = request.client.host if request.client else "unknown"
    logger.warning(f"[{request_id}] join rate limit hit by {client}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many new games. Please slow down.",
            "retry_after": str(exc.detail),
        },
        headers={"X-Request-ID": request_id},
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every HTTP request with a short correlation id.

    A client-supplied ``X-Request-ID`` is reused so a game's requests can be
    followed across services. WebSocket traffic does not pass through here.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        started = time.perf_counter()
        client = request.client.host if request.client else "unknown"

        logger.info(f"[{request_id}] --> {request.method} {request.url.path} from {client}")
        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(f"[{request_id}] <-- {type(e).__name__}: {e} ({elapsed_ms:.2f}ms)")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"[{request_id}] <-- {response.status_code} ({elapsed_ms:.2f}ms)")
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Maze Runner API...")

    sweeper_task = None
    if settings.session_idle_timeout_seconds > 0:
        sweeper_task = asyncio.create_task(
            session_sweeper(
                get_game_service(),
                settings.session_idle_timeout_seconds,
                settings.session_sweep_interval_seconds,
            )
        )
        logger.info(
            f"Idle session sweeper started "
            f"(timeout {settings.session_idle_timeout_seconds}s)"
        )

    yield

    logger.info("Shutting down Maze Runner API...")
    if sweeper_task is not None:
        sweeper_task.cancel()
        try:
            await sweeper_task
        except asyncio.CancelledError:
            pass
        logger.info("Idle session sweeper stopped")
    await close_redis()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Fog-of-war maze game server",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = game.limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - configured based on environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check(games: Games) -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": settings.app_version,
        "active_games": len(games.store),
    }


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


# Include routers
app.include_router(game.router, prefix="/v1")
app.include_router(leaderboard.router, prefix="/v1")
