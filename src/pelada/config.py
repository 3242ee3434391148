"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """Pelada application configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Database
    database_url: str = "sqlite+aiosqlite:///pelada.db"

    # Environment
    pelada_env: str = "development"

    # Draft limits, per team
    pelada_min_players_per_team: int = 1
    pelada_max_players_per_team: int = 7

    # Logging
    pelada_log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_roster_limits(self) -> Settings:
        if self.pelada_min_players_per_team < 1:
            msg = "PELADA_MIN_PLAYERS_PER_TEAM must be at least 1"
            raise ValueError(msg)
        if self.pelada_min_players_per_team > self.pelada_max_players_per_team:
            msg = (
                f"PELADA_MIN_PLAYERS_PER_TEAM ({self.pelada_min_players_per_team}) is larger than "
                f"PELADA_MAX_PLAYERS_PER_TEAM ({self.pelada_max_players_per_team})"
            )
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def _check_environment(self) -> Settings:
        if self.pelada_log_level.upper() not in VALID_LOG_LEVELS:
            msg = f"Unknown PELADA_LOG_LEVEL {self.pelada_log_level!r}"
            raise ValueError(msg)
        # An in-memory database loses every match on restart.
        if self.pelada_env == "production" and ":memory:" in self.database_url:
            msg = "DATABASE_URL cannot be an in-memory database in production"
            raise ValueError(msg)
        return self
