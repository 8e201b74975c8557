"""
Configuration management for Office Ladder.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for development. The database URL and office list
should be set via environment variables or .env file in production.

Usage:
    from ladder.config import settings
    print(settings.database_url)
"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ==========================================================================
    # Database Configuration
    # ==========================================================================

    database_url: str = Field(
        default="sqlite:///ladder.db",
        description="SQLAlchemy connection URL for the ladder database",
    )

    # Pool settings (ignored for SQLite, which manages its own connections)
    db_pool_size: int = Field(
        default=5,
        description="Number of connections to keep in the pool",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max additional connections beyond pool_size",
    )

    # ==========================================================================
    # Ladder Rules
    # ==========================================================================

    # Empty list means any office tag is accepted
    offices: list[str] = Field(
        default_factory=lambda: ["chicago", "new york", "tempe"],
        description="Allowed office tags (lower-case). Empty allows any office.",
    )
    prize_win_threshold: int = Field(
        default=3,
        description="Wins in one week needed for the three_wins prize",
    )
    prize_loss_threshold: int = Field(
        default=3,
        description="Losses in one week needed for the three_losses prize",
    )

    # ==========================================================================
    # Chat Command Configuration
    # ==========================================================================

    chat_command_name: str = Field(
        default="/mtg",
        description="Slash command name shown in chat help text",
    )
    chat_leaderboard_size: int = Field(
        default=10,
        description="Number of leaderboard rows returned to chat",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to",
    )
    api_port: int = Field(
        default=3000,
        description="Port for the API server",
    )
    api_reload: bool = Field(
        default=False,
        description="Enable auto-reload for development",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("offices")
    @classmethod
    def normalize_offices(cls, v: list[str]) -> list[str]:
        """Store office tags the same way players carry them."""
        return [office.strip().lower() for office in v if office.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once,
    which is important because loading from .env can be slow.
    """
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for scripts and the API server."""
    logging.basicConfig(
        level=level or settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# Convenience alias for importing
settings = get_settings()
