"""Tracker configuration via environment variables."""

import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class TrackerSettings(BaseSettings):
    model_config = {"env_prefix": "FIDE_TRACKER_"}

    database_url: str = "sqlite:///fide_tracker.db"
    echo_sql: bool = False
    log_dir: str | None = None
    log_level: str = "INFO"
    # FIDE handbook: 40 for new players, 20 below 2400, 10 from 2400 upwards
    default_k_factors: dict[str, int] = {"standard": 40, "rapid": 20, "blitz": 20}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @field_validator("default_k_factors")
    @classmethod
    def validate_k_factors(cls, value: dict[str, int]) -> dict[str, int]:
        for category, k_factor in value.items():
            if k_factor <= 0:
                raise ValueError(f"K-factor for {category!r} must be positive, got {k_factor}")
        return value


@lru_cache
def get_settings() -> TrackerSettings:
    return TrackerSettings()
