from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Relay settings loaded from environment variables / .env file."""

    # ── Completion API (DeepSeek, OpenAI-compatible) ──────────────────────────
    DEEPSEEK_API_KEY: str
    DEEPSEEK_API_URL: str = "https://api.deepseek.com/v1/chat/completions"
    DEEPSEEK_MODEL: str = "deepseek-chat"
    COMPLETION_TIMEOUT_SECONDS: float = 120.0

    # ── Identity service (Supabase) ───────────────────────────────────────────
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str

    # ── Core ──────────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    @field_validator("DEEPSEEK_API_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY")
    @classmethod
    def require_non_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}, got '{v}'")
        return v.upper()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }


class ClientSettings(BaseSettings):
    """Caller-side settings for talking to a deployed relay."""

    MINDMAP_FUNCTION_URL: str = "http://localhost:8000/"
    REQUEST_TIMEOUT_SECONDS: float = 15.0
    MINDMAP_ACCESS_TOKEN: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }


@lru_cache
def get_settings() -> Settings:
    """Load relay settings once. Raises ValidationError on missing keys."""
    return Settings()
