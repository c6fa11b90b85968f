"""Application settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "todo-api"
    database_url: str = "sqlite:///todo.db"
    max_connections: int = Field(default=10, ge=1)
    connect_timeout_s: float = Field(default=5.0, gt=0.0)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=0, le=65535)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TODO_API_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
