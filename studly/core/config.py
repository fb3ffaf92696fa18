from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    project_name: str = "Studly"
    api_prefix: str = "/api"
    database_url: str = "sqlite:///./studly.db"
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_hours: int = 72
    default_page_limit: int = 50
    max_page_limit: int = 100
    search_limit: int = 10
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
