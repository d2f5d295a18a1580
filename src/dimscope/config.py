"""Settings for dimscope, read from DIMSCOPE_* env vars or a .env file."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DIMSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # where collection/dashboard yaml lives
    collections_dir: Path = Path("./collections")
    # duckdb file, None for in-memory
    database_path: str | None = None

    # fan-out
    max_workers: int = Field(default=8, gt=0)
    discovery_timeout_seconds: Annotated[float, Field(gt=0)] | None = 30.0
    request_reference: str = "dimension-values"

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
