# backend/chatapp/core/config.py
import logging
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Any SQLAlchemy URL; SQLite is the zero-setup default
    database_url: str = Field(default="sqlite:///./chatapp.db", alias="DATABASE_URL")

    # Broadcaster backend URL for cross-worker fan-out.
    # memory:// keeps delivery in-process; redis://host:6379 shares it between workers.
    broadcast_url: str = Field(default="memory://", alias="BROADCAST_URL")
    broadcast_channel: str = Field(default="chatapp:events", alias="BROADCAST_CHANNEL")

    # Comma-separated list of allowed origins
    cors_origin: str = Field(default="*", alias="CORS_ORIGIN")

    # Validation limits
    message_max_length: int = 5000
    room_name_max_length: int = 100
    emoji_max_length: int = 16
    username_min_length: int = 3
    password_min_length: int = 6

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> str:
        if not value:
            return "INFO"
        return str(value).strip().upper()

    @property
    def cors_origins(self) -> List[str]:
        items = [token.strip() for token in self.cors_origin.split(",") if token.strip()]
        return items or ["*"]


settings = Settings()
