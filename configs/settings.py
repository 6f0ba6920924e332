"""
Centralized configuration — loaded once at process startup.

Why a single settings module?
  - The sample store, the aggregation cache and the API all read the same env vars.
  - Pydantic validates types at import time so we fail fast on bad config.
  - No scattered os.getenv() calls across the codebase.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Immutable, validated application settings from environment."""

    # ── Sample store ────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///./data/performance_history.db",
        description="SQLAlchemy URL of the performance history database",
    )
    database_echo: bool = Field(default=False, description="Log every SQL statement")

    # ── Clock ───────────────────────────────────────────────
    time_zone: str = Field(default="UTC", description="IANA zone used for 'now' and bucket boundaries")

    # ── Aggregation ─────────────────────────────────────────
    performance_cache_ttl_seconds: int = Field(default=300, ge=0, description="Lifetime of a rollup snapshot")
    performance_datatable_default_time_period: Literal["day", "month", "year", "all"] = Field(
        default="year",
        description="Window used for the data table statistics",
    )
    performance_graph_dir: str = Field(
        default="./data/performance_graphs",
        description="Directory the graph collaborator writes series into",
    )

    # ── Authorities ─────────────────────────────────────────
    authorities: str = Field(default="", description="Comma-separated authority names")
    authority_config_dir: str = Field(default="", description="Directory of <AUTHORITY>.json configs")

    # ── Logging ─────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    # ── API ─────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("time_zone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown time zone: {value!r}") from e
        return value

    @property
    def authority_names(self) -> List[str]:
        return [name.strip() for name in self.authorities.split(",") if name.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Singleton accessor — parsed once and cached for the process lifetime.
    Import this wherever you need config:
        from configs.settings import get_settings
        cfg = get_settings()
    """
    return Settings()
