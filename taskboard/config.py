"""Taskboard configuration: server, storage and timeline settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "Taskboard"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:3000"

    # Storage
    tasks_file: str = ""  # Empty = in-memory repository, nothing persisted

    # Timeline
    slot_minutes: int = 10  # Overlap granularity; must divide 60
    max_window_days: int = 365  # Longest schedulable window

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator("slot_minutes")
    @classmethod
    def _slot_divides_hour(cls, v: int) -> int:
        if v <= 0 or 60 % v != 0:
            raise ValueError(f"slot_minutes must be a positive divisor of 60, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()


settings = Settings()
