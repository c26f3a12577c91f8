"""Configuration for the cookie permission manager.

Settings are loaded from a YAML file and overlaid with environment
variables. Precedence (highest to lowest):
  1. Environment variables (COOKIE_PERMISSIONS_*)
  2. Config file (config.yaml in the configuration directory)
  3. Defaults
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigError
from .models import AcceptPolicy

logger = logging.getLogger(__name__)

APP_DIR_NAME = "cookie-permissions"
CONFIG_FILENAME = "config.yaml"
DATABASE_FILENAME = "domains.db"

_JOURNAL_MODES = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def default_config_dir() -> Path:
    """Return the per-user configuration directory (not created here)."""
    base = os.getenv("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / APP_DIR_NAME


class PermissionConfig(BaseModel):
    """Cookie permission manager settings."""

    config_dir: Path = Field(
        default_factory=default_config_dir,
        description="Directory holding the policy database"
    )
    database_filename: str = Field(
        default=DATABASE_FILENAME,
        description="File name of the policy database inside config_dir"
    )
    journal_mode: str = Field(
        default="TRUNCATE",
        description="SQLite journal mode applied when the store is opened"
    )
    accept_policy: AcceptPolicy = Field(
        default=AcceptPolicy.ALWAYS,
        description="Initial session-wide acceptance mode of the cookie jar"
    )
    echo_sql: bool = Field(default=False, description="Enable SQLAlchemy statement logging")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('config_dir', mode='before')
    @classmethod
    def expand_config_dir(cls, v):
        return Path(v).expanduser() if v is not None else v

    @field_validator('database_filename')
    @classmethod
    def validate_database_filename(cls, v):
        if not v or Path(v).name != v:
            raise ValueError("database_filename must be a plain file name")
        return v

    @field_validator('journal_mode')
    @classmethod
    def validate_journal_mode(cls, v):
        if v.upper() not in _JOURNAL_MODES:
            raise ValueError(f"journal_mode must be one of: {sorted(_JOURNAL_MODES)}")
        return v.upper()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        if v.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {sorted(_LOG_LEVELS)}")
        return v.upper()

    @property
    def database_path(self) -> Path:
        return self.config_dir / self.database_filename


def load_config(path: Optional[Path] = None) -> PermissionConfig:
    """Load configuration from YAML, overlaid with environment variables.

    Args:
        path: Explicit config file. Defaults to ``config.yaml`` in the
            configuration directory; a missing default file means defaults.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If an explicit file is missing, or any file is
            unreadable or invalid.
    """
    data: Dict[str, Any] = {}

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}", path=str(config_path))
    else:
        env_dir = os.getenv("COOKIE_PERMISSIONS_CONFIG_DIR")
        config_path = (Path(env_dir) if env_dir else default_config_dir()) / CONFIG_FILENAME

    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}", path=str(config_path)) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping", path=str(config_path))
        logger.debug(f"Loaded configuration from {config_path}")

    _apply_env_overrides(data)

    try:
        return PermissionConfig(**data)
    except ValueError as e:
        raise ConfigError(f"Invalid configuration: {e}", path=str(config_path)) from e


def _apply_env_overrides(data: Dict[str, Any]) -> None:
    """Overlay COOKIE_PERMISSIONS_* environment variables onto file data."""
    if config_dir := os.getenv("COOKIE_PERMISSIONS_CONFIG_DIR"):
        data["config_dir"] = config_dir
    if database := os.getenv("COOKIE_PERMISSIONS_DB"):
        data["database_filename"] = database
    if level := os.getenv("COOKIE_PERMISSIONS_LOG_LEVEL"):
        data["log_level"] = level
    if policy := os.getenv("COOKIE_PERMISSIONS_ACCEPT_POLICY"):
        data["accept_policy"] = policy.lower()
