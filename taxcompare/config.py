"""Application settings, read from ``TAXCOMPARE_*`` environment variables or ``.env``."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TAXCOMPARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_tax_year: int = 2026

    # Directory holding federal_<year>.json / states_<year>.json overrides
    rules_dir: Path | None = None

    # Reject unknown rule expression ops at load time
    strict_rules: bool = True

    log_level: str = "WARNING"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
