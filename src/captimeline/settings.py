"""Configuration settings for captimeline."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class RegionBounds:
    """Expected coordinate box; points outside it are only warned about."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


# New Zealand, where the alert feed originates.
DEFAULT_REGION = RegionBounds(min_lat=-50.0, max_lat=-30.0, min_lng=160.0, max_lng=180.0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CAPTIMELINE_",
        extra="ignore",
        populate_by_name=True,
    )

    csv_source: str = "public/data/cap.csv"
    fetch_timeout_seconds: float = 30.0
    fetch_retries: int = 2
    fetch_backoff_seconds: float = 0.5

    region_bounds_raw: str = Field(default="-50,-30,160,180", alias="CAPTIMELINE_REGION_BOUNDS")

    metrics_path: str = "local/metrics.jsonl"
    report_dir: str | None = None
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _validate(self) -> "Settings":
        if not self.csv_source or not str(self.csv_source).strip():
            raise ValueError("csv_source must be configured")
        if self.fetch_retries < 0:
            raise ValueError("fetch_retries must not be negative")
        # raises on malformed bounds
        _parse_bounds(self.region_bounds_raw)
        self.metrics_path = str(Path(self.metrics_path))
        self.log_level = self.log_level.upper()
        return self

    @property
    def region_bounds(self) -> RegionBounds:
        return _parse_bounds(self.region_bounds_raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def _parse_bounds(value: Any) -> RegionBounds:
    if not value:
        return DEFAULT_REGION
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple)):
        parts = [str(item).strip() for item in value]
    else:
        raise TypeError("region bounds must be a comma-delimited string or list")
    if len(parts) != 4:
        raise ValueError("region bounds need min_lat,max_lat,min_lng,max_lng")
    try:
        min_lat, max_lat, min_lng, max_lng = (float(part) for part in parts)
    except ValueError as exc:
        raise ValueError(f"region bounds must be numeric: {value!r}") from exc
    if min_lat > max_lat or min_lng > max_lng:
        raise ValueError("region bounds minimums must not exceed maximums")
    return RegionBounds(min_lat, max_lat, min_lng, max_lng)
