"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (REPODOCS__SERVER__TRANSPORT=http)
  2. repodocs.yaml          (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. Libraries are declared under ``libraries``::

    libraries:
      react-three-fiber:
        docs:
          repo: pmndrs/react-three-fiber
          dir: docs
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

from repodocs.models.library import LibraryConfig


def _find_config_file() -> str | None:
    """Return the path of the first repodocs.yaml found, or None."""
    candidates = [
        Path("repodocs.yaml"),
        Path(platformdirs.user_config_dir("repodocs")) / "repodocs.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8080


class GitSettings(BaseModel):
    executable: str = "git"
    base_url: str = "https://github.com"
    depth: int = 1
    # None disables the limit; a hung clone then blocks its library forever
    clone_timeout_seconds: float | None = 300.0


class CacheSettings(BaseModel):
    # None means a fresh temporary directory per process
    root_dir: str | None = None


class DocsSettings(BaseModel):
    file_pattern: str = r"\.mdx?$"


class RegistrySettings(BaseModel):
    path: str | None = None


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: REPODOCS__SERVER__PORT=9090
        env_prefix="REPODOCS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    git: GitSettings = GitSettings()
    cache: CacheSettings = CacheSettings()
    docs: DocsSettings = DocsSettings()
    registry: RegistrySettings = RegistrySettings()
    logging: LoggingSettings = LoggingSettings()
    libraries: dict[str, LibraryConfig] = {}

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
        )
