"""Application configuration using Pydantic settings."""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.maze_generator import ExitPolicy
from app.core.visibility import FogPolicy

# Project root directory (backend/)
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Maze Runner"
    app_version: str = "1.0.0"
    debug: bool = False

    # Redis (leaderboard)
    redis_url: str = "redis://localhost:6379/0"
    leaderboard_enabled: bool = True

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_joins: int = 30  # new games per minute per client

    # Gameplay
    reveal_radius: int = 2
    view_radius: int = 5
    fog_policy: FogPolicy = FogPolicy.RADIUS
    exit_policy: ExitPolicy = ExitPolicy.EDGE

    # Session eviction
    session_idle_timeout_seconds: int = 1800  # 0 disables the sweeper
    session_sweep_interval_seconds: int = 60
    evict_on_disconnect: bool = True

    @field_validator("reveal_radius", "view_radius")
    @classmethod
    def validate_radius(cls, v: int) -> int:
        """Radii must be non-negative."""
        if v < 0:
            raise ValueError("Radius must be >= 0")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
