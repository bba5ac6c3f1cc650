"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL (read-only opportunity catalog)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "unibridge"
    postgres_password: str = "password"
    postgres_db: str = "unibridge"

    # DeepSeek AI (OpenAI-compatible)
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_model: str = "deepseek-chat"
    ai_enabled: bool = True
    ai_timeout_seconds: float = 8.0
    ai_max_concurrent_calls: int = 8

    # Matching
    match_top_n: int = 5
    live_catalog_limit: int = 200
    default_currency: str = "NGN"
    default_location: str = "Nigeria"

    # App
    debug: bool = False
    log_level: str = "INFO"

    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def provider_configured(self) -> bool:
        """The intelligence provider is only used when enabled AND keyed."""
        return self.ai_enabled and bool(self.deepseek_api_key.strip())

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
