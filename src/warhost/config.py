"""Lightweight configuration for the Warhost tools."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Minimal application settings."""

    model_config = SettingsConfigDict(
        env_prefix="WARHOST_", env_file=".env", env_file_encoding="utf-8"
    )

    rules_dir: Path = Field(default=Path("rules"), description="Where rule packs live")
    rules_version: str = Field(default="1", description="Rule pack version expected by the engine")
    log_level: str = Field(default="INFO", description="Root log level for the CLI")
    result_topic: str = Field(
        default="combat-result",
        description="Broadcast topic used to mirror combat results to the opposing client",
    )
    dice_seed_prefix: str = Field(
        default="warhost",
        description="Prefix mixed into every generated dice seed",
        min_length=1,
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
