"""Engine settings powered by Pydantic BaseSettings."""

import logging
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Centralized environment configuration.

    Every field is read from a METAINGEST_-prefixed variable, e.g.
    METAINGEST_LOG_LEVEL=DEBUG.
    """

    model_config = SettingsConfigDict(
        env_prefix="METAINGEST_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    json_logs: bool = True
    max_workers: Annotated[int, Field(ge=1, le=64)] = 4
    statistics_timeout_seconds: Annotated[int, Field(ge=0)] = 0
    connectors_file: str = "connectors.yaml"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the log level is a standard level name."""
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"unknown log level '{v}'"
            raise ValueError(msg)
        return level

    @property
    def log_level_value(self) -> int:
        """Get the numeric logging level."""
        return logging.getLevelNamesMapping()[self.log_level]


def get_settings() -> EngineSettings:
    """Get a settings instance."""
    return EngineSettings()
