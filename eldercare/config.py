"""Client settings, read from ``ELDERCARE_*`` environment variables or ``.env``."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ELDERCARE_", env_file=".env", case_sensitive=False
    )

    api_base_url: str = "http://localhost:8000"
    poll_interval_seconds: float = 10.0

    # long-lived session tier; the short-lived tier lives in process memory
    session_file: Path = Path("~/.eldercare/session.json")
    session_key: str = "eldercare_user"

    log_level: str = "INFO"
    log_format: str = "text"

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("poll_interval_seconds")
    @classmethod
    def positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll interval must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
