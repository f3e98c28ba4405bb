"""Configuration settings for the routine planner."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings


# __file__ = src/routine_planner/config.py
# .parent.parent.parent = project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 60.0
    llm_max_tokens: int = 2000

    # Oracle retry policy (the service is occasionally overloaded)
    oracle_max_attempts: int = 3
    oracle_base_delay: float = 1.0
    oracle_max_delay: float = 8.0

    # Storage
    database_path: Path | None = None
    user_id: str = "local"

    # Number of archived workouts summarised for routine generation
    history_context_size: int = 5

    def model_post_init(self, __context) -> None:
        """Set default database path after initialization."""
        if self.database_path is None:
            self.database_path = PROJECT_ROOT / "routine_planner.db"

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
