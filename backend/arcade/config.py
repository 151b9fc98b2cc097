"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Durations are seconds unless the name says _ms
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Anthropic (content provider)
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_model: str = "claude-sonnet-4-5"
    anthropic_timeout_seconds: int = 120
    anthropic_max_tokens: int = 4096
    drawing_max_tokens: int = 8192

    # Content generation retry policy
    generation_max_attempts: int = Field(3, ge=1)
    generation_base_delay_ms: int = Field(1000, ge=0)

    # Round timing
    default_time_limit_seconds: float = 15.0
    quiz_advance_delay_seconds: float = 5.0
    picture_advance_delay_seconds: float = 2.0

    # Battle
    battle_turn_time_limit_seconds: float = 60.0
    battle_max_hit_points: int = 100
    battle_max_idle_turns: int = 4

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
