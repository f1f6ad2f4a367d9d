from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Workload Planner"
    debug: bool = True
    database_url: str = Field("sqlite:///./planner.db", validation_alias="DATABASE_URL")
    redis_url: Optional[str] = Field(None, validation_alias="REDIS_URL")
    cache_enabled: bool = False
    cache_ttl_seconds: int = 300


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
