"""
Runtime configuration read from the environment.

Settings:
- plugin_path: directories searched for solver plugin modules, taken from
  OPTIMODEL_PLUGIN_PATH (os.pathsep separated: ':' on POSIX, ';' on Windows)
- default_plugin_dir: install-prefix fallback searched after plugin_path
- log_level: level name used by optimodel.logging.enable_logging

get_settings() first loads a .env file found from the working directory
upwards; variables already set in the environment take precedence.
"""

from pathlib import Path
from typing import List, Mapping, Optional
import logging
import os
import sys

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

PLUGIN_PATH_ENV = "OPTIMODEL_PLUGIN_PATH"
LOG_LEVEL_ENV = "OPTIMODEL_LOG_LEVEL"


def default_plugin_dir() -> Path:
    """Plugin directory under the interpreter's install prefix."""
    return Path(sys.prefix) / "lib" / "optimodel" / "plugins"


class Settings(BaseModel):
    """Environment-derived configuration for plugin discovery and logging."""

    plugin_path: List[Path] = Field(
        default_factory=list,
        description="Directories searched for plugin modules, in order"
    )
    default_plugin_dir: Path = Field(
        default_factory=default_plugin_dir,
        description="Install-prefix fallback directory"
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level name"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings instance
        """
        if environ is None:
            environ = os.environ

        raw_path = environ.get(PLUGIN_PATH_ENV, "")
        plugin_path = [Path(p) for p in raw_path.split(os.pathsep) if p]
        logger.debug(f"Plugin path from {PLUGIN_PATH_ENV}: {plugin_path}")

        data = {"plugin_path": plugin_path}
        if environ.get(LOG_LEVEL_ENV):
            data["log_level"] = environ[LOG_LEVEL_ENV]
        return cls(**data)

    def search_path(self) -> List[Path]:
        """Directories to search for plugins: plugin_path, then the default."""
        return [*self.plugin_path, self.default_plugin_dir]


def get_settings() -> Settings:
    """Snapshot of the current environment configuration, .env included."""
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        logger.debug(f"Loading environment from {dotenv_path}")
        load_dotenv(dotenv_path)
    return Settings.from_env()
