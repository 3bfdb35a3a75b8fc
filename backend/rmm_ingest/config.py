"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings."""

    app_name: str = "RMM Alert Ingestion"
    database_url: str = "sqlite+pysqlite:///./rmm_ingest.db"
    sql_echo: bool = False
    log_level: str = "INFO"

    duplicate_window_minutes: int = 60
    generated_alert_id_prefix: str = "rmm_"
    stats_recent_hours: int = 24
    field_maps_path: str = "data/provider_field_maps.yaml"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()


def package_root() -> Path:
    """Return the rmm_ingest package directory."""

    return Path(__file__).resolve().parent
