"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from app.config import Settings
from app.core.maze_generator import ExitPolicy
from app.core.visibility import FogPolicy


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.reveal_radius == 2
    assert settings.fog_policy == FogPolicy.RADIUS
    assert settings.exit_policy == ExitPolicy.EDGE


def test_policies_from_environment(monkeypatch):
    monkeypatch.setenv("FOG_POLICY", "shadowcast")
    monkeypatch.setenv("EXIT_POLICY", "quadrant")

    settings = Settings(_env_file=None)

    assert settings.fog_policy == FogPolicy.SHADOWCAST
    assert settings.exit_policy == ExitPolicy.QUADRANT


def test_negative_radius_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, reveal_radius=-1)


def test_cors_origins_list():
    settings = Settings(_env_file=None, debug=False, cors_origins="http://a.test, http://b.test,")
    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


def test_cors_open_in_debug():
    settings = Settings(_env_file=None, debug=True)
    assert settings.cors_origins_list == ["*"]
