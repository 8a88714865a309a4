from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="STEPSCHED_", extra="ignore")

    app_name: str = "StepSched"
    debug: bool = False
    redis_url: str = Field("redis://localhost:6379/0", validation_alias="REDIS_URL")
    cache_enabled: bool = False
    cache_ttl_seconds: int = 3600
    solver_time_limit_seconds: Optional[float] = None  # None: search to completion
    solver_max_workers: int = 4
    solver_max_tasks: int = 10  # search is exponential in the task count
    ortools_time_limit_seconds: int = 10
    timeline_width: int = 150


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
