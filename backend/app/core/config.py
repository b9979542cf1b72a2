"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "LearnTrack Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://learntrack@localhost:5432/learntrack"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float | None = None
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "learntrack"
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    stats_job_hour: int = 0
    stats_job_minute: int = 15
    jobs_run_on_startup: bool = False


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
