"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (SHORTMAN__CACHE__MAX_AGE_HOURS=24)
  2. shortman.yaml          (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from shortman.models.page import Platform

_DEFAULT_CACHE_DIR = platformdirs.user_cache_dir("shortman")


def _find_config_file() -> str | None:
    """Return the path of the first shortman.yaml found, or None."""
    candidates = [
        Path("shortman.yaml"),
        Path(platformdirs.user_config_dir("shortman")) / "shortman.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ArchiveSettings(BaseModel):
    url: str = "https://github.com/tldr-pages/tldr/archive/refs/heads/main.tar.gz"
    # Directory inside the archive that holds the platform directories.
    subdirectory: str = "tldr-main/pages"
    timeout_seconds: float = 60.0


class CacheSettings(BaseModel):
    directory: str = _DEFAULT_CACHE_DIR
    max_age_hours: int = 24 * 7
    auto_update: bool = True


class DisplaySettings(BaseModel):
    platform: Platform | None = None


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: SHORTMAN__ARCHIVE__URL=...
        env_prefix="SHORTMAN__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    archive: ArchiveSettings = ArchiveSettings()
    cache: CacheSettings = CacheSettings()
    display: DisplaySettings = DisplaySettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
